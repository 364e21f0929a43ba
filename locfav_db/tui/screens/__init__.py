"""Screen handlers. Importing this package registers every screen."""
from . import bookmarks, detail, listing, main, map_view  # noqa: F401
