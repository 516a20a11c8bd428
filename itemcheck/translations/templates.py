"""
Templates for translators: every missing item with an empty translation.

Two shapes:
    JSON       {"Maple Log": "", ...}, tab-indented, ready to fill and merge
    annotated  the same entries grouped by where they belong in the wiki page
"""

import json
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence

from .coverage import MissingRun, missing_runs

ALL_TRANSLATED = "// all items are translated"


def missing_template(items: Sequence[str], dictionary: Mapping[str, str]) -> Dict[str, str]:
    """Missing item -> "" in item list order."""
    return {name: "" for name in items if name not in dictionary}


def render_json_template(template: Mapping[str, str]) -> str:
    return json.dumps(template, ensure_ascii=False, indent="\t")


def render_annotated_template(runs: List[MissingRun]) -> str:
    """
    Render missing runs under insertion-point headers.

        // === insert after "Stone" (#3~) ===
        	"Wood": "",
        	"Planks": ""
    """
    if not runs:
        return ALL_TRANSLATED

    blocks = []
    for run in runs:
        if run.insert_after is not None:
            header = f'// === insert after "{run.insert_after}" (#{run.start_index}~) ==='
        else:
            header = f"// === insert at start of file (#{run.start_index}~) ==="
        entries = ",\n".join(f"\t{json.dumps(name, ensure_ascii=False)}: \"\"" for name in run.items)
        blocks.append(f"{header}\n{entries}")

    return "\n\n".join(blocks)


def annotated_template(items: Sequence[str], dictionary: Mapping[str, str]) -> str:
    return render_annotated_template(missing_runs(items, dictionary))


def default_template_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"missing_translations_{today.isoformat()}.json"
