from __future__ import annotations

"""Oklahoma counties published on the JDI roster portal.

Keys are the display names the portal expects in the ``jail`` query
parameter (case-sensitive); values are the slugs used in artifact names.
Insertion order is the scrape order.
"""

import logging
from typing import Iterable, Mapping

LOGGER = logging.getLogger("jdiroster")

COUNTIES: dict[str, str] = {
    "Atoka": "atoka",
    "Blaine": "blaine",
    "Caddo": "caddo",
    "Canadian": "canadian",
    "Carter": "carter",
    "Cimarron": "cimarron",
    "Cleveland": "cleveland",
    "Comanche": "comanche",
    "Craig": "craig",
    "Creek": "creek",
    "Custer": "custer",
    "Delaware": "delaware",
    "Garfield": "garfield",
    "Garvin": "garvin",
    "Grady": "grady",
    "Latimer": "latimer",
    "Lincoln": "lincoln",
    "Logan": "logan",
    "Love": "love",
    "Major": "major",
    "Mayes": "mayes",
    "McClain": "mcclain",
    "Oklahoma": "oklahoma",
    "Okmulgee": "okmulgee",
    "Osage": "osage",
    "Ottawa": "ottawa",
    "Pawnee": "pawnee",
    "Payne": "payne",
    "Pottawatomie": "pottawatomie",
    "Rogers": "rogers",
    "Seminole": "seminole",
    "Sequoyah": "sequoyah",
    "Tulsa": "tulsa",
    "Wagoner": "wagoner",
    "Washington": "washington",
}


def select_counties(
    names: Iterable[str] | None, counties: Mapping[str, str] = COUNTIES
) -> dict[str, str]:
    """Return the subset of ``counties`` named in ``names``.

    Matching is case-insensitive against display names and slugs. The result
    keeps the order of ``counties``. ``None`` or an empty iterable selects
    everything; unknown names are logged and ignored.
    """

    wanted = {name.strip().lower() for name in (names or []) if name and name.strip()}
    if not wanted:
        return dict(counties)

    selected = {
        display: slug
        for display, slug in counties.items()
        if display.lower() in wanted or slug.lower() in wanted
    }
    known = {d.lower() for d in counties} | {s.lower() for s in counties.values()}
    for unknown in sorted(wanted - known):
        LOGGER.warning("[COUNTIES][WARN] Unknown county %r; ignoring.", unknown)
    return selected


__all__ = ["COUNTIES", "select_counties"]
