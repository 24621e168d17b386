"""Indexed lookups across schools and clusters.

Teams reference schools by id, but legacy rows sometimes store the school
name instead, so lookups fall back from id to name equality. A team whose
school (or whose school's cluster) cannot be found resolves to no cluster.
"""

from .models import Cluster, School, Team


class Directory:
    """Schools and clusters indexed by id for team lookups."""

    def __init__(self, schools: list[School], clusters: list[Cluster]):
        self.schools_by_id = {}
        self.schools_by_name = {}
        for school in schools:
            self.schools_by_id.setdefault(school.id, school)
            self.schools_by_name.setdefault(school.name, school)
        self.clusters_by_id = {}
        for cluster in clusters:
            self.clusters_by_id.setdefault(cluster.id, cluster)

    def school_for(self, team: Team) -> School | None:
        school = self.schools_by_id.get(team.school_id)
        if school is None:
            school = self.schools_by_name.get(team.school_id)
        return school

    def cluster_id_for(self, team: Team) -> str | None:
        """Cluster id of the team's school, or None when unresolved."""
        school = self.school_for(team)
        if school is None or not school.cluster_id:
            return None
        return school.cluster_id

    def school_name(self, team: Team) -> str:
        school = self.school_for(team)
        return school.name if school else team.school_id

    def cluster_name(self, cluster_id: str | None) -> str:
        if not cluster_id:
            return ''
        cluster = self.clusters_by_id.get(cluster_id)
        return cluster.name if cluster else cluster_id

    def team_cluster_name(self, team: Team) -> str:
        return self.cluster_name(self.cluster_id_for(team))
