from algolia_sync.cli.util.container import unit_of_work

__all__ = ["unit_of_work"]
