"""Common CLI helper utilities."""

from __future__ import annotations

import logging


def setup_logging(debug: bool = False) -> None:
    """Configure standard logging format for CLI tools."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def parse_sites(value: str | None, valid_sites: list[str]) -> list[str]:
    '''Parse the --sites argument into a list of site identifiers.'''

    # If no value is provided or if "all" is specified, return all sites
    if not value or value.strip().lower() == "all":
        return list(valid_sites)

    valid = set(valid_sites)
    parsed = [s.strip() for s in value.split(",") if s.strip() and s.strip().lower() != "all"]

    # Log any invalid sites
    for site in parsed:
        if site not in valid:
            logging.getLogger(__name__).warning("Invalid site: %s", site)

    sites = [s for s in parsed if s in valid]

    # Raise an error if no valid sites were provided
    if not sites:
        raise ValueError(f"No valid sites provided. Valid sites: {', '.join(sorted(valid))}")

    return sites
