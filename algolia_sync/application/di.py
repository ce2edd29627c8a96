from dishka import Container, Provider, from_context, make_container

from algolia_sync.config import Config
from algolia_sync.infrastructure.algolia.di import AlgoliaProvider
from algolia_sync.infrastructure.persistence.di import PersistenceProvider
from algolia_sync.util.di.scope import Scope


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None) -> Container:
    # Pydantic Settings populates from env vars and the YAML file at runtime
    config = config or Config()  # type: ignore[call-arg]

    return make_container(
        ConfigProvider(),
        AlgoliaProvider(),
        PersistenceProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
