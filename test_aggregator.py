import os
import shutil
import subprocess
import tempfile
import unittest
from datetime import date, datetime, timedelta, timezone

from aggregator import aggregate, build_timeline, group_by_author, select_in_window, widen_range
from config import GlobalConfig
from data_sources.base import DataSource
from models import Commit, Granularity, QueryFailure
from window import resolve_window

UTC = timezone.utc


def make_commit(hash_, author, when, title="update", files=1, ins=1, dels=0):
    return Commit(
        hash=hash_,
        author=author,
        author_date=when,
        title=title,
        message=title,
        file_count=files,
        insertions=ins,
        deletions=dels,
    )


class FakeDataSource(DataSource):
    """按给定顺序返回提交，并记录查询范围"""

    def __init__(self, commits, failure=None):
        self.commits = list(commits)
        self.failure = failure
        self.queries = []
        self.last_failure = None

    def validate(self):
        return self.failure is None

    def get_commits(self, query_start, query_end, accept=None):
        self.queries.append((query_start, query_end))
        self.last_failure = self.failure
        if self.failure:
            return []
        return [c for c in self.commits if accept is None or accept(c)]


class TestWindowFiltering(unittest.TestCase):

    def test_midnight_crossing(self):
        before = make_commit("a", "Alice", datetime(2024, 6, 10, 23, 59, 59, tzinfo=UTC))
        after = make_commit("b", "Alice", datetime(2024, 6, 11, 0, 0, 1, tzinfo=UTC))
        source = FakeDataSource([after, before])

        day10 = resolve_window(date(2024, 6, 10), Granularity.DAY, UTC)
        day11 = resolve_window(date(2024, 6, 11), Granularity.DAY, UTC)

        groups10 = aggregate("/repo", day10, data_source=source)
        groups11 = aggregate("/repo", day11, data_source=source)
        self.assertEqual([c.hash for c in groups10[0].commits], ["a"])
        self.assertEqual([c.hash for c in groups11[0].commits], ["b"])

    def test_boundaries_are_inclusive(self):
        window = resolve_window(date(2024, 6, 10), Granularity.DAY, UTC)
        on_start = make_commit("s", "Alice", window.start)
        on_end = make_commit("e", "Alice", window.end)
        outside = make_commit("o", "Alice", window.end + timedelta(milliseconds=1))
        selected = select_in_window([outside, on_end, on_start], window)
        self.assertEqual([c.hash for c in selected], ["s", "e"])

    def test_other_timezone_offsets_compare_as_instants(self):
        window = resolve_window(date(2024, 6, 10), Granularity.DAY, UTC)
        # 2024-06-11 07:00 +08:00 == 2024-06-10 23:00 UTC
        east = timezone(timedelta(hours=8))
        commit = make_commit("x", "Alice", datetime(2024, 6, 11, 7, 0, tzinfo=east))
        self.assertEqual(len(select_in_window([commit], window)), 1)

    def test_ties_keep_source_order(self):
        when = datetime(2024, 6, 10, 12, tzinfo=UTC)
        window = resolve_window(date(2024, 6, 10), Granularity.DAY, UTC)
        commits = [make_commit(h, "Alice", when) for h in ("first", "second", "third")]
        self.assertEqual(
            [c.hash for c in select_in_window(commits, window)], ["first", "second", "third"]
        )


class TestGrouping(unittest.TestCase):

    def test_same_author_single_group_ascending(self):
        late = make_commit("late", "Alice", datetime(2024, 6, 10, 18, tzinfo=UTC))
        early = make_commit("early", "Alice", datetime(2024, 6, 10, 8, tzinfo=UTC))
        window = resolve_window(date(2024, 6, 10), Granularity.DAY, UTC)

        groups = aggregate("/repo", window, data_source=FakeDataSource([late, early]))
        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0].author, "Alice")
        self.assertEqual([c.hash for c in groups[0].commits], ["early", "late"])

    def test_group_order_is_first_appearance(self):
        base = datetime(2024, 6, 10, 8, tzinfo=UTC)
        commits = [
            make_commit("1", "Bob", base + timedelta(hours=1)),
            make_commit("2", "Alice", base + timedelta(hours=2)),
            make_commit("3", "Bob", base + timedelta(hours=3)),
            make_commit("4", "Carol", base),
        ]
        window = resolve_window(date(2024, 6, 10), Granularity.DAY, UTC)
        groups = group_by_author(select_in_window(commits, window))
        self.assertEqual([g.author for g in groups], ["Carol", "Bob", "Alice"])

    def test_group_totals(self):
        base = datetime(2024, 6, 10, 8, tzinfo=UTC)
        groups = group_by_author(
            [
                make_commit("1", "Bob", base, files=2, ins=3, dels=1),
                make_commit("2", "Bob", base, files=1, ins=10, dels=4),
            ]
        )
        bob = groups[0]
        self.assertEqual((bob.commit_count, bob.file_count, bob.insertions, bob.deletions), (2, 3, 13, 5))

    def test_hide_merges(self):
        base = datetime(2024, 6, 10, 8, tzinfo=UTC)
        commits = [
            make_commit("m", "Bob", base, title="Merge branch 'dev'"),
            make_commit("f", "Bob", base + timedelta(hours=1), title="fix: crash"),
        ]
        window = resolve_window(date(2024, 6, 10), Granularity.DAY, UTC)
        groups = aggregate("/repo", window, data_source=FakeDataSource(commits), hide_merges=True)
        self.assertEqual([c.hash for c in groups[0].commits], ["f"])

    def test_empty_and_failed_sources_yield_no_groups(self):
        window = resolve_window(date(2024, 6, 10), Granularity.DAY, UTC)
        self.assertEqual(aggregate("/repo", window, data_source=FakeDataSource([])), [])
        failed = FakeDataSource([], failure=QueryFailure.NOT_A_REPOSITORY)
        self.assertEqual(aggregate("/repo", window, data_source=failed), [])


class TestWidening(unittest.TestCase):

    def test_day_and_week_margins(self):
        cfg = GlobalConfig()
        day = resolve_window(date(2024, 6, 12), Granularity.DAY, UTC)
        start, end = widen_range(day, cfg)
        self.assertEqual(start, day.start - timedelta(days=cfg.DAY_LOOKBEHIND_DAYS))
        self.assertEqual(end, day.end + timedelta(days=cfg.DAY_LOOKAHEAD_DAYS))

        week = resolve_window(date(2024, 6, 12), Granularity.WEEK, UTC)
        start, end = widen_range(week, cfg)
        self.assertEqual(start, week.start - timedelta(days=cfg.WEEK_LOOKBEHIND_DAYS))
        self.assertEqual(end, week.end + timedelta(days=cfg.WEEK_LOOKAHEAD_DAYS))

    def test_margins_are_configurable(self):
        cfg = GlobalConfig()
        cfg.DAY_LOOKBEHIND_DAYS = 30
        cfg.DAY_LOOKAHEAD_DAYS = 2
        window = resolve_window(date(2024, 6, 12), Granularity.DAY, UTC)
        source = FakeDataSource([])
        aggregate("/repo", window, cfg, source)
        self.assertEqual(
            source.queries,
            [(window.start - timedelta(days=30), window.end + timedelta(days=2))],
        )


class TestBuildTimeline(unittest.TestCase):

    def test_adjacent_windows_and_failure_signal(self):
        window = resolve_window(date(2024, 6, 12), Granularity.WEEK, UTC)
        failed = FakeDataSource([], failure=QueryFailure.EXECUTION_FAILED)
        view = build_timeline("/repo", window, data_source=failed, tz=UTC)

        self.assertTrue(view.is_empty)
        self.assertEqual(view.failure, QueryFailure.EXECUTION_FAILED)
        self.assertEqual(view.previous_window.start.date(), date(2024, 6, 3))
        self.assertEqual(view.next_window.start.date(), date(2024, 6, 17))

    def test_totals(self):
        base = datetime(2024, 6, 12, 8, tzinfo=UTC)
        commits = [
            make_commit("1", "Bob", base, files=2, ins=3, dels=1),
            make_commit("2", "Alice", base, files=1, ins=5, dels=0),
        ]
        window = resolve_window(date(2024, 6, 12), Granularity.DAY, UTC)
        view = build_timeline("/repo", window, data_source=FakeDataSource(commits), tz=UTC)
        self.assertEqual(
            (view.total_commits, view.total_files, view.total_insertions, view.total_deletions),
            (2, 3, 8, 1),
        )
        self.assertEqual(view.to_dict()["groups"][0]["author"], "Bob")


@unittest.skipUnless(shutil.which("git"), "git 不可用")
class TestAuthorTimeAgainstRealRepository(unittest.TestCase):
    """git 按提交时间过滤，引擎必须按作者时间统计"""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.repo = self._tmp.name
        self._run("init", "-q")

    def tearDown(self):
        self._tmp.cleanup()

    def _run(self, *args, author_date=None, commit_date=None):
        env = dict(os.environ)
        env.update(
            {
                "GIT_AUTHOR_NAME": "Alice",
                "GIT_AUTHOR_EMAIL": "alice@example.com",
                "GIT_COMMITTER_NAME": "Alice",
                "GIT_COMMITTER_EMAIL": "alice@example.com",
                "GIT_CONFIG_NOSYSTEM": "1",
            }
        )
        if author_date:
            env["GIT_AUTHOR_DATE"] = author_date
            env["GIT_COMMITTER_DATE"] = commit_date or author_date
        subprocess.run(
            ["git", "-c", "commit.gpgsign=false", *args],
            cwd=self.repo,
            env=env,
            check=True,
            capture_output=True,
        )

    def test_late_integrated_commit_is_counted_on_author_day(self):
        self._run(
            "commit", "-q", "--allow-empty", "-m", "authored on the 10th",
            author_date="2024-06-10T10:00:00+00:00",
            commit_date="2024-06-11T05:00:00+00:00",
        )
        self._run(
            "commit", "-q", "--allow-empty", "-m", "authored on the 9th",
            author_date="2024-06-09T22:00:00+00:00",
            commit_date="2024-06-10T09:00:00+00:00",
        )

        window = resolve_window(date(2024, 6, 10), Granularity.DAY, UTC)
        groups = aggregate(self.repo, window)
        titles = [c.title for g in groups for c in g.commits]
        self.assertEqual(titles, ["authored on the 10th"])


if __name__ == "__main__":
    unittest.main()
