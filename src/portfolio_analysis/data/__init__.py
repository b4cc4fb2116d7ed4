from .registry import Asset, AssetRegistry, parse_asset_table, read_table

__all__ = ["Asset", "AssetRegistry", "parse_asset_table", "read_table"]
