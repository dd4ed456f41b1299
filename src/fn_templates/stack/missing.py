"""Find templates a stack needs that are not in the local cache."""
from pathlib import Path
from typing import Iterable, List


def missing_templates(languages: Iterable[str], cache_dir: Path) -> List[str]:
    """Return the declared languages with no bundle directory in cache_dir.

    Order follows `languages`; duplicates are reported once.
    """
    cache_dir = Path(cache_dir)
    missing = []
    seen = set()

    for language in languages:
        if language in seen:
            continue
        seen.add(language)
        if not (cache_dir / language).is_dir():
            missing.append(language)

    return missing
