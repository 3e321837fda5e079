"""Change previews and the impact summaries derived from them."""

import copy
import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from archhub.core.changes.applier import apply_change_request
from archhub.core.changes.diff import diff_documents
from archhub.core.changes.models import ChangePreview, ImpactSummary
from archhub.core.changes.operations import ChangeRequest
from archhub.core.spec.models import Spec, spec_to_data

logger = logging.getLogger(__name__)


def compute_change_preview(
    current_spec: Union[Spec, Mapping[str, Any]],
    change_request: Union[ChangeRequest, Mapping[str, Any]],
    max_depth: Optional[int] = None,
) -> ChangePreview:
    """
    Apply a change request to a copy of ``current_spec`` and diff the result.

    Args:
        current_spec: Spec to preview against. Never mutated.
        change_request: ``{summary, operations}``.
        max_depth: Optional diff depth limit (see ``diff_documents``).

    Returns:
        ChangePreview carrying both specs, their diff, and the applier's
        conflicts and impacts.
    """
    result = apply_change_request(current_spec, change_request)
    try:
        current = spec_to_data(current_spec)
    except (TypeError, ValueError, copy.Error, RecursionError):
        # the applier has already reported the unusable input
        current = {}

    diff = diff_documents(current, result.spec, max_depth=max_depth)
    return ChangePreview(
        current_spec=current,
        proposed_spec=result.spec,
        diff=diff,
        conflicts=result.conflicts,
        impacts=result.impacts,
    )


def _extend_unique(target: List[Any], values: Iterable[Any]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


def generate_impact_summary(preview: ChangePreview) -> ImpactSummary:
    """
    Aggregate a preview's impacts for display.

    Counts are sizes of the de-duplicated unions of affected entities,
    endpoints and files. An impact whose description contains ``added``
    contributes its names to the ``new_*`` lists; one containing ``removed``
    contributes to the ``removed_*`` lists.
    """
    entities: List[Any] = []
    endpoints: List[Any] = []
    files: List[Any] = []
    summary = ImpactSummary(
        total_changes=len(preview.impacts),
        has_conflicts=bool(preview.conflicts),
        conflict_count=len(preview.conflicts),
    )

    for impact in preview.impacts:
        _extend_unique(entities, impact.affected_entities or [])
        _extend_unique(endpoints, impact.affected_endpoints or [])
        _extend_unique(files, impact.affected_files or [])

        if "added" in impact.description:
            summary.new_entities.extend(impact.affected_entities or [])
            summary.new_endpoints.extend(impact.affected_endpoints or [])
        if "removed" in impact.description:
            summary.removed_entities.extend(impact.affected_entities or [])
            summary.removed_endpoints.extend(impact.affected_endpoints or [])

    summary.modified_entities = len(entities)
    summary.modified_endpoints = len(endpoints)
    summary.modified_files = len(files)
    return summary


def collect_impacted_files(preview: ChangePreview) -> List[str]:
    """Every affected file across a preview's impacts, de-duplicated in first-seen order."""
    files: List[str] = []
    for impact in preview.impacts:
        _extend_unique(files, impact.affected_files or [])
    return files
