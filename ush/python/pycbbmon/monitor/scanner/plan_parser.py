#!/usr/bin/env python3

import logging
import xml.etree.ElementTree as ET
from typing import Dict, Optional

from .models import JobIdentity, JobKind

logger = logging.getLogger(__name__)

# Only these top-level elements of a plan document are consumed. The rest of
# the plan (schedules, retention, encryption, ...) is left alone.
PLAN_FIELDS = ("ID", "Name")


# -------------------------------
# Helper: namespace-free tag
# -------------------------------

def local_name(tag: str) -> str:
    """'{http://...}Name' → 'Name'."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def extract_plan_fields(root: ET.Element) -> Dict[str, str]:
    """
    Collect the wanted direct children of the plan root by local name.
    The first occurrence of an element wins.
    """
    found = {}
    for child in root:
        name = local_name(child.tag)
        if name in PLAN_FIELDS and name not in found:
            found[name] = (child.text or "").strip()
    return found


# -------------------------------
# Plan document → JobIdentity
# -------------------------------

def parse_plan_file(path: str) -> Optional[JobIdentity]:
    """
    Parse one .cbb plan document.

    Returns None (after logging) when the document cannot be read, is not
    well-formed XML, or carries no ID. Nothing is raised for a bad document.
    """
    try:
        tree = ET.parse(path)
    except ET.ParseError as e:
        logger.error(f"Malformed plan document {path}: {e}")
        return None
    except OSError as e:
        logger.error(f"Cannot read plan document {path}: {e}")
        return None

    fields = extract_plan_fields(tree.getroot())
    plan_id = fields.get("ID", "")
    if not plan_id:
        logger.warning(f"Plan document {path} has no ID, skipping.")
        return None

    name = fields.get("Name", "")
    return JobIdentity(
        id=plan_id,
        name=name,
        kind=JobKind.from_name(name),
        path=path,
    )
