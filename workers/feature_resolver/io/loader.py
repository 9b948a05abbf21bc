"""
Loader: read recorded platform facts from JSON.

Accepts either a bare facts object or a resolved_config.json report, in
which case its ``facts`` member is used.  Feeding a report back in
reproduces the configuration it was derived from.
"""
import json
from pathlib import Path

from feature_resolver.core.facts import PlatformFacts
from feature_resolver.io.schema import PlatformFactsModel


def load_facts(path: Path) -> PlatformFacts:
    data = json.loads(Path(path).read_text())
    if isinstance(data, dict) and "facts" in data and "flags" in data:
        data = data["facts"]
    return PlatformFactsModel.model_validate(data).to_facts()
