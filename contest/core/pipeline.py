"""Batch document generation from an adapter snapshot.

A Dataset is loaded once per request; every view (documents, CSV, report)
derives its team and judge lists from the same snapshot through
prepare_lists(), so list, detail and printed output agree.
"""

import os
from dataclasses import dataclass, field

from .directory import Directory
from .document_renderer import render, venue_index
from .errors import OutputTargetUnavailable
from .models import AREA, STAGES
from .pdf_writer import write_pdf
from .print_config import config_scope_id, resolve_config
from .promotion import aggregate, order_judges
from .qr import make_qr_png
from .scope_resolver import resolve


@dataclass
class Dataset:
    """Immutable-by-convention snapshot of everything an adapter returns."""
    activities: list = field(default_factory=list)
    teams: list = field(default_factory=list)
    schools: list = field(default_factory=list)
    clusters: list = field(default_factory=list)
    judges: list = field(default_factory=list)
    venues: list = field(default_factory=list)
    print_configs: dict = field(default_factory=dict)

    @classmethod
    def load(cls, adapter) -> 'Dataset':
        return cls(
            activities=adapter.list_activities(),
            teams=adapter.list_teams(),
            schools=adapter.list_schools(),
            clusters=adapter.list_clusters(),
            judges=adapter.list_judges(),
            venues=adapter.list_venues(),
            print_configs=adapter.get_print_config(),
        )

    @property
    def directory(self) -> Directory:
        return Directory(self.schools, self.clusters)

    @property
    def venue_lookup(self) -> dict:
        return venue_index(self.venues)

    def activity_ids(self) -> list[str]:
        return [a.id for a in self.activities]


def prepare_lists(dataset: Dataset, activity_ids: list[str], stage: str,
                  cluster_filter: str | None = None, classifier=None,
                  directory: Directory | None = None) -> tuple[dict, dict]:
    """Resolve and order teams and judges per activity.

    Returns:
        ({activity_id: ordered teams}, {activity_id: ordered judges})
    """
    if stage not in STAGES:
        raise ValueError(f'Unknown stage: {stage!r}')
    directory = directory or dataset.directory
    ordered_teams = {}
    ordered_judges = {}
    for activity_id in activity_ids:
        teams, judges = resolve(dataset.teams, dataset.judges, directory, stage,
                                cluster_filter=cluster_filter, activity_id=activity_id)
        ordered_teams[activity_id] = aggregate(teams, directory, stage)
        ordered_judges[activity_id] = order_judges(judges, classifier)
    return ordered_teams, ordered_judges


def scope_label(directory: Directory, stage: str, cluster_filter: str | None = None) -> str:
    """Second heading line naming the stage (and cluster) being printed."""
    if stage == AREA:
        return 'Area Stage'
    if cluster_filter:
        return f'Cluster: {directory.cluster_name(cluster_filter)}'
    return 'Cluster Stage'


def _partial_path(output_path: str) -> str:
    return output_path + '.part'


def check_output_target(output_path: str) -> str:
    """Make sure output_path can be written; returns the staging path.

    Raises OutputTargetUnavailable before any rendering work starts.
    """
    if os.path.isdir(output_path):
        raise OutputTargetUnavailable(output_path, 'is a directory')
    staging = _partial_path(output_path)
    try:
        with open(staging, 'wb'):
            pass
    except OSError as e:
        raise OutputTargetUnavailable(output_path, e.strerror or str(e)) from e
    return staging


def generate_documents(dataset: Dataset, output_path: str, doc_type: str,
                       stage: str, cluster_filter: str | None = None,
                       activity_ids: list[str] | None = None,
                       classifier=None, qr_factory=make_qr_png,
                       generated_at: str | None = None):
    """Render one batch of documents and write it as a single PDF.

    The PDF is written to a staging file and moved into place only once the
    whole batch has rendered, so a failure never leaves a partial document
    at output_path.

    Args:
        dataset: Snapshot loaded with Dataset.load().
        output_path: Destination PDF path.
        doc_type: One of document_renderer.DOC_TYPES.
        stage: 'cluster' or 'area'.
        cluster_filter: Cluster id for a single-cluster view.
        activity_ids: Activities to print, in order (default: all).
        classifier: Judge RoleClassifier (default keyword matching).
        qr_factory: Callable url -> PNG bytes.
        generated_at: Footer timestamp override.

    Returns:
        The RenderedDocument that was written.
    """
    if stage not in STAGES:
        raise ValueError(f'Unknown stage: {stage!r}')
    staging = check_output_target(output_path)

    try:
        if activity_ids is None:
            activity_ids = dataset.activity_ids()
        directory = dataset.directory
        config = resolve_config(config_scope_id(stage, cluster_filter),
                                dataset.print_configs)
        ordered_teams, ordered_judges = prepare_lists(
            dataset, activity_ids, stage, cluster_filter, classifier, directory)
        document = render(
            activity_ids, doc_type, ordered_teams, ordered_judges, config,
            dataset.venue_lookup, dataset.activities, directory,
            scope_label=scope_label(directory, stage, cluster_filter),
            qr_factory=qr_factory, generated_at=generated_at)
        write_pdf(document, staging, config)
    except Exception:
        if os.path.exists(staging):
            os.remove(staging)
        raise

    os.replace(staging, output_path)
    return document
