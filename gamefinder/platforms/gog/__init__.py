"""GOG storefront."""

from gamefinder.platforms.gog.adapter import GogAdapter
from gamefinder.platforms.gog.client import GogClient

__all__ = ["GogAdapter", "GogClient"]
