from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import httpx

from pokescan.config import settings
from pokescan.state.types import BaseStats

logger = logging.getLogger(__name__)

# Words the appraisal screen shows that look like names but never are
_JUNK_NAMES: set[str] = {"hundo", "cp", "hp"}


class SpeciesNameCache:
    """Known species names, stored lower-case like PokeAPI returns them.

    Until names are loaded, a permissive heuristic accepts anything that is not
    obvious appraisal-screen vocabulary.
    """

    def __init__(self, names: Iterable[str] | None = None) -> None:
        self._names: frozenset[str] | None = None
        if names is not None:
            self.load(names)

    @property
    def loaded(self) -> bool:
        return self._names is not None

    def __len__(self) -> int:
        return len(self._names or ())

    def load(self, names: Iterable[str]) -> None:
        self._names = frozenset(n.strip().lower() for n in names if n and n.strip())
        logger.info("species name cache loaded: %d names", len(self._names))

    def canonical(self, name: str) -> str:
        return name.strip().lower()

    def is_known_species_name(self, name: str) -> bool:
        if not name:
            return False
        lower = self.canonical(name)
        if self._names is not None:
            return lower in self._names
        return not (lower in _JUNK_NAMES or lower.startswith("level"))


def load_names_file(path: str | Path) -> list[str]:
    file_path = Path(path)
    if not file_path.exists():
        return []
    content = file_path.read_text(encoding="utf-8")
    return [line.strip() for line in content.splitlines() if line.strip()]


def fetch_species_names(
    base_url: str | None = None,
    limit: int = 1025,
    timeout_s: float | None = None,
    transport: httpx.BaseTransport | None = None,
) -> list[str]:
    url = f"{(base_url or settings.pokeapi_base_url).rstrip('/')}/pokemon"
    client = httpx.Client(
        timeout=timeout_s or settings.pokeapi_timeout_s,
        headers={"User-Agent": "pokescan/0.1"},
        transport=transport,
    )
    try:
        resp = client.get(url, params={"offset": 0, "limit": limit})
        resp.raise_for_status()
        data = resp.json()
    finally:
        client.close()
    return [str(item["name"]) for item in data.get("results", []) if item.get("name")]


def build_name_cache(transport: httpx.BaseTransport | None = None) -> SpeciesNameCache:
    """Build the cache from SPECIES_NAMES_FILE if set, else from PokeAPI.

    A failed fetch leaves the cache unloaded (heuristic mode) so scans still work
    offline; the next call may try again.
    """
    cache = SpeciesNameCache()
    if settings.species_names_file:
        names = load_names_file(settings.species_names_file)
        if names:
            cache.load(names)
            return cache
    try:
        cache.load(fetch_species_names(transport=transport))
    except (httpx.HTTPError, ValueError, KeyError) as e:
        logger.warning("could not load species names from PokeAPI: %s", e)
    return cache


class PokeApiBaseStatsProvider:
    """Base stats from PokeAPI ``/pokemon/{name}``; unknown species give None.

    HP is used as stamina, the way the collection screens display it.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.pokeapi_base_url).rstrip("/")
        self._timeout_s = timeout_s or settings.pokeapi_timeout_s
        self._transport = transport

    async def fetch_base_stats(self, species: str) -> BaseStats | None:
        name = species.strip().lower()
        if not name:
            return None
        async with httpx.AsyncClient(
            timeout=self._timeout_s,
            headers={"User-Agent": "pokescan/0.1"},
            transport=self._transport,
        ) as client:
            resp = await client.get(f"{self._base_url}/pokemon/{name}")
        if resp.status_code == 404:
            logger.info("no base stats for %s", name)
            return None
        resp.raise_for_status()
        stats = {s["stat"]["name"]: int(s.get("base_stat") or 0) for s in resp.json().get("stats", [])}
        return BaseStats(atk=stats.get("attack", 0), def_=stats.get("defense", 0), sta=stats.get("hp", 0))
