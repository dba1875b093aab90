"""Tests for project resolution."""

from datetime import datetime, timedelta

from claude_lessons.models import MatchType, SessionInfo
from claude_lessons.resolver import (
    activity_score,
    build_project_info,
    detect_project,
    discover_projects,
)


def _make_project(projects_dir, dir_name, sessions=1, modified=None, mtime_setter=None):
    project_dir = projects_dir / dir_name
    project_dir.mkdir(parents=True)
    for i in range(sessions):
        path = project_dir / f"s{i}.jsonl"
        path.write_text('{"type": "user"}\n')
        if modified is not None and mtime_setter is not None:
            mtime_setter(path, modified)
    return project_dir


class TestActivityScore:
    """Tests for project activity scoring."""

    def _session(self, age, size=0):
        now = datetime(2024, 6, 1)
        return SessionInfo(session_id="s", file_path="/x.jsonl", modified=now - age, size=size), now

    def test_recency_tiers(self):
        for age, expected in [
            (timedelta(hours=1), 100),
            (timedelta(days=3), 50),
            (timedelta(days=20), 20),
            (timedelta(days=90), 5),
        ]:
            session, now = self._session(age)
            assert activity_score([session], now) == expected

    def test_size_bonus_capped(self):
        session, now = self._session(timedelta(days=90), size=50_000)
        assert activity_score([session], now) == 15

    def test_empty(self):
        assert activity_score([]) == 0


class TestBuildProjectInfo:
    """Tests for building project info."""

    def test_with_sessions(self, projects_dir, sample_project):
        project = build_project_info(projects_dir, "-Users-test-myproject", MatchType.EXACT_PATH)
        assert project.name == "myproject"
        assert project.session_count == 2
        assert project.sessions[0].session_id == "session-002"
        assert project.match_type == MatchType.EXACT_PATH
        assert project.activity_score > 0

    def test_without_sessions(self, projects_dir):
        (projects_dir / "-Users-empty").mkdir()
        assert build_project_info(projects_dir, "-Users-empty") is None


class TestDetectProject:
    """Tests for matching the working directory to a project."""

    def test_exact_path(self, projects_dir, sample_project):
        """Test the straightforward encoded directory is found."""
        project = detect_project("/Users/test/myproject", projects_dir)
        assert project.match_type == MatchType.EXACT_PATH
        assert project.session_count == 2

    def test_exact_path_scenario(self, projects_dir):
        """Working dir /home/u/proj with -home-u-proj holding two sessions."""
        _make_project(projects_dir, "-home-u-proj", sessions=2)
        project = detect_project("/home/u/proj", projects_dir)
        assert project.dir_name == "-home-u-proj"
        assert project.match_type == MatchType.EXACT_PATH
        assert project.session_count == 2

    def test_exact_path_trailing_slash(self, projects_dir):
        _make_project(projects_dir, "-home-u-my-app")
        project = detect_project("/home/u/my-app/", projects_dir)
        assert project.dir_name == "-home-u-my-app"
        assert project.match_type == MatchType.EXACT_PATH

    def test_exact_path_without_sessions_falls_back(self, projects_dir):
        """Test an empty exact match is never returned."""
        (projects_dir / "-home-u-proj").mkdir()
        _make_project(projects_dir, "-other-place-proj")
        project = detect_project("/home/u/proj", projects_dir)
        assert project.dir_name == "-other-place-proj"
        assert project.match_type == MatchType.PROJECT_NAME

    def test_name_match_case_insensitive(self, projects_dir):
        _make_project(projects_dir, "-Volumes-work-MyProj")
        project = detect_project("/home/u/myproj", projects_dir)
        assert project.match_type == MatchType.PROJECT_NAME

    def test_partial_path_match(self, projects_dir):
        _make_project(projects_dir, "-old-home-u-repo")
        project = detect_project("/new/home/u/checkout", projects_dir)
        assert project.match_type == MatchType.PARTIAL_PATH

    def test_most_recent_candidate_wins(self, projects_dir, mtime_setter):
        """Test ties between loose matches go to the most recently active."""
        now = datetime.now()
        _make_project(projects_dir, "-a-proj", modified=now - timedelta(days=5), mtime_setter=mtime_setter)
        _make_project(projects_dir, "-b-proj", modified=now - timedelta(hours=1), mtime_setter=mtime_setter)
        project = detect_project("/c/proj", projects_dir)
        assert project.dir_name == "-b-proj"

    def test_exact_beats_more_recent_loose_match(self, projects_dir, mtime_setter):
        now = datetime.now()
        _make_project(projects_dir, "-home-u-proj", modified=now - timedelta(days=30), mtime_setter=mtime_setter)
        _make_project(projects_dir, "-elsewhere-proj", modified=now, mtime_setter=mtime_setter)
        project = detect_project("/home/u/proj", projects_dir)
        assert project.dir_name == "-home-u-proj"

    def test_no_match(self, projects_dir):
        _make_project(projects_dir, "-srv-data-unrelated")
        assert detect_project("/home/u/proj", projects_dir) is None

    def test_missing_store(self, tmp_path):
        assert detect_project("/home/u/proj", tmp_path / "missing") is None


class TestDiscoverProjects:
    """Tests for ranking all projects."""

    def test_sorted_by_activity(self, projects_dir, mtime_setter):
        now = datetime.now()
        _make_project(projects_dir, "-old", modified=now - timedelta(days=90), mtime_setter=mtime_setter)
        _make_project(projects_dir, "-new", sessions=2, modified=now, mtime_setter=mtime_setter)
        (projects_dir / "-empty").mkdir()

        projects = discover_projects(projects_dir)
        assert [p.dir_name for p in projects] == ["-new", "-old"]
        assert all(p.match_type is None for p in projects)
