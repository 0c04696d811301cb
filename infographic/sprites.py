"""
Sprite object store.

Base images are stored as ``{species}{suffix}.png`` and color masks as
``{species}{suffix}_m.png``. A missing object is not an error: ``get``
returns ``None`` and rendering continues without it.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import quote

import aiohttp

from infographic.config import Settings, get_settings
from infographic.utils.errors import ConfigurationError, SpriteFetchError
from infographic.utils.logging import get_logger

logger = get_logger(__name__)

# Sprites for ARK: Survival Ascended carry a suffix; ASE sprites don't.
ASA_GAME = "ASA"
ASA_SUFFIX = "_ASA"
MASK_SUFFIX = "_m"


def sprite_keys(species_name: str, game: str) -> Tuple[str, str]:
    """Return the (base, mask) object keys for a species and game."""
    suffix = ASA_SUFFIX if game == ASA_GAME else ""
    return f"{species_name}{suffix}.png", f"{species_name}{suffix}{MASK_SUFFIX}.png"


class SpriteStore(ABC):
    """Abstract base class for sprite object stores."""

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """
        Fetch an object.

        Returns:
            The object bytes, or None if there is no such object

        Raises:
            SpriteFetchError: If the store itself can't be read
        """
        pass

    async def close(self) -> None:
        """Release any held resources."""
        pass


class LocalSpriteStore(SpriteStore):
    """Sprites in a local directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _read(self, key: str) -> Optional[bytes]:
        path = self.root / key
        if self.root.resolve() not in path.resolve().parents:
            logger.warning(f"Refusing sprite key outside store: {key}")
            return None
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise SpriteFetchError(key, str(e))

    async def get(self, key: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._read, key)


class HttpSpriteStore(SpriteStore):
    """Sprites behind an HTTP endpoint (bucket, CDN). 404 means absent."""

    def __init__(
        self,
        base_url: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def get(self, key: str) -> Optional[bytes]:
        url = f"{self.base_url}/{quote(key)}"
        try:
            async with self._get_session().get(url) as response:
                if response.status == 404:
                    return None
                if response.status != 200:
                    raise SpriteFetchError(key, f"HTTP {response.status}")
                return await response.read()
        except aiohttp.ClientError as e:
            raise SpriteFetchError(key, str(e))

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None


def create_sprite_store(settings: Optional[Settings] = None) -> SpriteStore:
    """Build the store configured in settings. ``SPRITES_URL`` wins over ``SPRITES_DIR``."""
    settings = settings or get_settings()
    if settings.sprites_url:
        return HttpSpriteStore(settings.sprites_url)
    if settings.sprites_dir:
        return LocalSpriteStore(Path(settings.sprites_dir))
    raise ConfigurationError("No sprite store configured; set SPRITES_URL or SPRITES_DIR")
