"""PEcAn settings assembly.

A PEcAn run is described by a nested settings document (``pecan.xml``).
Here it is built as a plain dict from four ordered layers, merged with
forte_ed.config.merge_layers so that later layers win on collision:

  1. base scaffolding      workflow, database, PFT list, queue
  2. ensemble defaults     meta-analysis, met input, ensemble size
  3. site inputs + model   BETY input ids, ED2 model block and ED2IN tags
  4. workflow flags        nowait

Key names follow the PEcAn settings schema (``start.date``,
``meta.analysis``) since the document is rendered to XML verbatim.
"""

from __future__ import annotations

import datetime as _dt
import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from forte_ed.config import DatabaseSection, ForteConfig, RabbitMQSection, merge_layers
from forte_ed.errors import InvalidArgument
from forte_ed.types import INPUT_IDS, PftEntry, RunParameters, WorkflowRecord
from forte_ed.utils import format_number


REQUIRED_KEYS = (
    ('workflow', 'id'),
    ('database', 'bety'),
    ('pft',),
    ('run', 'site', 'id'),
    ('run', 'start.date'),
    ('run', 'end.date'),
    ('run', 'inputs', 'met'),
    ('model', 'id'),
    ('model', 'ed2in_tags'),
    ('ensemble', 'size'),
    ('host', 'rabbitmq', 'queue'),
)


# ═══════════════════════════════════════════════════════════════════════
# SCAFFOLDING BUILDERS
# ═══════════════════════════════════════════════════════════════════════

def add_workflow(settings: Dict, workflow: WorkflowRecord) -> Dict:
    """Workflow id, output folder, model id, site and run dates."""
    return merge_layers([settings, {
        'workflow': {'id': workflow.id},
        'outdir': workflow.folder,
        'info': {'notes': workflow.notes},
        'model': {'id': workflow.model_id},
        'run': {
            'site': {'id': workflow.site_id},
            'start.date': workflow.start_date.isoformat(),
            'end.date': workflow.end_date.isoformat(),
        },
    }])


def add_database(settings: Dict, database: DatabaseSection) -> Dict:
    """BETY connection block (``database.bety``)."""
    return merge_layers([settings, {
        'database': {'bety': {
            'user': database.user,
            'password': database.password,
            'host': database.host,
            'port': database.port,
            'dbname': database.dbname,
            'driver': database.driver,
            'write': database.write,
        }},
    }])


def add_pft_list(settings: Dict, pft_list: Sequence[PftEntry]) -> Dict:
    """Append PFTs to ``pft``, preserving order."""
    existing = list(settings.get('pft', []))
    return merge_layers([settings, {
        'pft': existing + [pft.to_dict() for pft in pft_list],
    }])


def add_rabbitmq(settings: Dict, model_queue: str, rabbitmq: RabbitMQSection) -> Dict:
    """Queue the model runs will be dispatched on (``host.rabbitmq``)."""
    return merge_layers([settings, {
        'host': {'rabbitmq': {'uri': rabbitmq.uri, 'queue': model_queue}},
    }])


# ═══════════════════════════════════════════════════════════════════════
# LAYERS
# ═══════════════════════════════════════════════════════════════════════

def base_layer(workflow: WorkflowRecord, pft_list: Sequence[PftEntry],
               config: ForteConfig) -> Dict:
    settings: Dict = {}
    settings = add_workflow(settings, workflow)
    settings = add_database(settings, config.database)
    settings = add_pft_list(settings, pft_list)
    settings = add_rabbitmq(settings, config.rabbitmq.model_queue, config.rabbitmq)
    return settings


def ensemble_layer(params: RunParameters) -> Dict:
    return {
        'meta.analysis': {'iter': 3000, 'random.effects': False},
        'run': {'inputs': {
            'met': {'source': "CRUNCEP", 'output': "ED2", 'method': "ncss"},
        }},
        'ensemble': {'size': params.ensemble_size, 'variable': "NPP"},
    }


def model_layer(ed2in_tags: Mapping[str, Any]) -> Dict:
    return {
        'run': {'inputs': {
            name: {'id': input_id} for name, input_id in INPUT_IDS.items()
        }},
        'model': {
            'phenol.scheme': 0,
            'edin': "ED2IN.rgit",
            'prerun': "ulimit -s unlimited",
            'barebones_ed2in': "true",
            'ed2in_tags': dict(ed2in_tags),
        },
    }


def workflow_layer(params: RunParameters) -> Dict:
    return {'workflow': {'nowait': params.nowait}}


def build_settings(
    workflow: WorkflowRecord,
    params: RunParameters,
    pft_list: Sequence[PftEntry],
    ed2in_tags: Mapping[str, Any],
    config: ForteConfig,
) -> Dict[str, Any]:
    """Assemble the full settings document from its ordered layers."""
    return merge_layers(settings_layers(workflow, params, pft_list, ed2in_tags, config))


def settings_layers(
    workflow: WorkflowRecord,
    params: RunParameters,
    pft_list: Sequence[PftEntry],
    ed2in_tags: Mapping[str, Any],
    config: ForteConfig,
) -> List[Dict]:
    """The settings layers in precedence order (lowest first)."""
    return [
        base_layer(workflow, pft_list, config),
        ensemble_layer(params),
        model_layer(ed2in_tags),
        workflow_layer(params),
    ]


# ═══════════════════════════════════════════════════════════════════════
# CHECKS & RENDERING
# ═══════════════════════════════════════════════════════════════════════

def missing_keys(settings: Mapping[str, Any],
                 required: Iterable[Sequence[str]] = REQUIRED_KEYS) -> List[str]:
    """Dotted paths from ``required`` that are absent or empty in settings."""
    missing = []
    for path in required:
        node: Any = settings
        for key in path:
            if not isinstance(node, Mapping) or key not in node:
                node = None
                break
            node = node[key]
        if node is None or (isinstance(node, (list, dict, str)) and len(node) == 0):
            missing.append("/".join(path))
    return missing


def check_settings(settings: Mapping[str, Any]) -> None:
    """Raise InvalidArgument unless every required settings key is populated."""
    missing = missing_keys(settings)
    if missing:
        raise InvalidArgument(f"Settings are missing required keys: {missing}")


def _xml_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (_dt.date, _dt.datetime)):
        return value.isoformat()
    return format_number(value)


def _append(parent: ET.Element, tag: str, value: Any) -> None:
    if isinstance(value, (list, tuple)):
        for item in value:
            _append(parent, tag, item)
        return
    child = ET.SubElement(parent, tag)
    if isinstance(value, Mapping):
        for key, sub in value.items():
            _append(child, str(key), sub)
    else:
        child.text = _xml_text(value)


def settings_to_xml(settings: Mapping[str, Any], root: str = "pecan") -> str:
    """Render settings as a PEcAn XML document.

    Mappings become nested elements, lists repeated elements, booleans
    TRUE/FALSE and numbers use format_number.
    """
    element = ET.Element(root)
    for key, value in settings.items():
        _append(element, str(key), value)
    return ET.tostring(element, encoding='unicode')
