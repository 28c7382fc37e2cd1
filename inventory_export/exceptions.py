class InventoryExportError(Exception):
    """Base class for every failure this package raises on purpose."""


class ShopifyAPIError(InventoryExportError):
    """A GraphQL call failed: transport error, non-2xx status, or an `errors` list."""


class SnapshotStoreError(InventoryExportError):
    """A snapshot could not be written to one of the configured stores."""


class ExportNotFoundError(InventoryExportError):
    """A download asked for an export that was never generated or has been removed."""
