import threading

from sitecrawl.crawler.frontier import EnqueueStatus, Frontier


class TestFrontierAdmission:
    def test_fifo_order(self, make_config):
        frontier = Frontier(make_config())
        frontier.seed("https://example.com/")
        frontier.push_many(
            ["https://example.com/a", "https://example.com/b"],
            depth=1,
            parent_url="https://example.com/",
        )

        popped = [frontier.pop(block=False).url for _ in range(3)]

        assert popped == [
            "https://example.com/",
            "https://example.com/a",
            "https://example.com/b",
        ]
        assert frontier.pop(block=False) is None

    def test_repush_of_visited_url_is_noop(self, make_config):
        frontier = Frontier(make_config())
        frontier.seed("https://example.com/")
        frontier.pop(block=False)

        result = frontier.push("https://example.com/", depth=1)

        assert result.status == EnqueueStatus.SKIPPED_SEEN
        assert frontier.empty()

    def test_queued_duplicate_rejected(self, make_config):
        frontier = Frontier(make_config())
        assert frontier.push("https://example.com/a", depth=1).accepted
        result = frontier.push("https://example.com/a/#section", depth=1)

        assert result.status == EnqueueStatus.SKIPPED_QUEUED
        assert frontier.qsize() == 1

    def test_depth_bound(self, make_config):
        frontier = Frontier(make_config(max_depth=2))

        assert frontier.push("https://example.com/a", depth=2).accepted
        assert frontier.push("https://example.com/b", depth=3).status == EnqueueStatus.SKIPPED_DEPTH

    def test_other_domains_rejected(self, make_config):
        frontier = Frontier(make_config())

        assert frontier.push("https://www.example.com/a", depth=1).accepted
        assert (
            frontier.push("https://other.org/a", depth=1).status
            == EnqueueStatus.SKIPPED_OUT_OF_SCOPE
        )
        assert (
            frontier.push("https://cdn.example.com/a", depth=1).status
            == EnqueueStatus.SKIPPED_OUT_OF_SCOPE
        )

    def test_non_page_resources_rejected(self, make_config):
        frontier = Frontier(make_config())

        for url in (
            "https://example.com/file.pdf",
            "https://example.com/wp-admin/",
            "https://example.com/feed.rss",
        ):
            assert frontier.push(url, depth=1).status == EnqueueStatus.SKIPPED_OUT_OF_SCOPE

    def test_seed_bypasses_resource_patterns(self, make_config):
        frontier = Frontier(make_config(seed_url="https://example.com/admin/"))

        result = frontier.seed("https://example.com/admin/")

        assert result.status == EnqueueStatus.ENQUEUED
        assert frontier.pop(block=False).url == "https://example.com/admin"
        assert frontier.push("https://example.com/admin/users", depth=1).status == (
            EnqueueStatus.SKIPPED_OUT_OF_SCOPE
        )

    def test_seed_on_other_domain_rejected(self, make_config):
        frontier = Frontier(make_config())

        assert frontier.seed("https://elsewhere.net/sitemap.xml").status == (
            EnqueueStatus.SKIPPED_OUT_OF_SCOPE
        )

    def test_invalid_url_rejected(self, make_config):
        frontier = Frontier(make_config())
        assert frontier.push("mailto:someone@example.com", depth=1).status == (
            EnqueueStatus.SKIPPED_INVALID_URL
        )

    def test_skipped_url_never_readmitted(self, make_config):
        frontier = Frontier(make_config())
        frontier.mark_skipped("https://example.com/private")

        result = frontier.push("https://example.com/private", depth=1)

        assert result.status == EnqueueStatus.SKIPPED_TERMINAL

    def test_budget_closes_admission(self, make_config):
        frontier = Frontier(make_config(max_pages=1))
        frontier.mark_page_completed()

        assert frontier.push("https://example.com/a", depth=1).status == EnqueueStatus.SKIPPED_BUDGET

    def test_closed_frontier_rejects(self, make_config):
        frontier = Frontier(make_config())
        frontier.close()

        assert frontier.push("https://example.com/a", depth=1).status == EnqueueStatus.SKIPPED_CLOSED


class TestFrontierCoordination:
    def test_pop_marks_visited(self, make_config):
        frontier = Frontier(make_config())
        frontier.seed("https://example.com/")

        assert not frontier.is_visited("https://example.com/")
        frontier.pop(block=False)
        assert frontier.is_visited("https://example.com/")

    def test_join_waits_for_task_done(self, make_config):
        frontier = Frontier(make_config())
        frontier.seed("https://example.com/")
        frontier.pop(block=False)

        assert frontier.join(timeout=0.05) is False
        frontier.task_done()
        assert frontier.join(timeout=0.05) is True

    def test_close_wakes_blocked_pop(self, make_config):
        frontier = Frontier(make_config())
        results = []

        worker = threading.Thread(target=lambda: results.append(frontier.pop(block=True)))
        worker.start()
        frontier.close()
        worker.join(timeout=2.0)

        assert not worker.is_alive()
        assert results == [None]

    def test_snapshot_counts(self, make_config):
        frontier = Frontier(make_config(max_depth=0))
        frontier.seed("https://example.com/")
        frontier.push("https://example.com/a", depth=1)
        frontier.seed("https://example.com/")

        snapshot = frontier.snapshot()

        assert snapshot["enqueued"] == 1
        assert snapshot["skipped_depth"] == 1
        assert snapshot["skipped_queued"] == 1
