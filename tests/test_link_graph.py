import threading
import unittest

from sitegraph.crawler import Image, LinkGraph, LinkGraphError


SEED = "https://example.com/"
PAGE_A = "https://example.com/a"
PAGE_B = "https://example.com/b"


class LinkGraphClaimTests(unittest.TestCase):
    def test_first_claim_gets_id_zero_and_ids_are_sequential(self) -> None:
        graph = LinkGraph()

        self.assertEqual((0, True), graph.claim(SEED))
        self.assertEqual((1, True), graph.claim(PAGE_A))
        self.assertEqual((0, False), graph.claim(SEED))
        self.assertEqual(2, len(graph))
        self.assertEqual([SEED, PAGE_A], graph.urls())

    def test_visited_and_contains(self) -> None:
        graph = LinkGraph()
        self.assertFalse(graph.visited(SEED))
        self.assertNotIn(SEED, graph)

        graph.claim(SEED)

        self.assertTrue(graph.visited(SEED))
        self.assertIn(SEED, graph)
        self.assertNotIn(0, graph)

    def test_concurrent_claims_assign_one_id_per_url(self) -> None:
        graph = LinkGraph()
        urls = [f"https://example.com/page/{idx}" for idx in range(50)]
        results: list[tuple[str, int]] = []
        results_lock = threading.Lock()

        def claim_all() -> None:
            for url in urls:
                link_id, _ = graph.claim(url)
                with results_lock:
                    results.append((url, link_id))

        threads = [threading.Thread(target=claim_all) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(50, len(graph))
        ids_by_url: dict[str, set[int]] = {}
        for url, link_id in results:
            ids_by_url.setdefault(url, set()).add(link_id)
        self.assertTrue(all(len(ids) == 1 for ids in ids_by_url.values()))
        self.assertEqual(set(range(50)), {graph.link_id(url) for url in urls})


class LinkGraphUpdateTests(unittest.TestCase):
    def test_update_links_parent_and_child_both_ways(self) -> None:
        graph = LinkGraph()
        graph.update(SEED, None, [PAGE_A], [], [])
        page_id = graph.update(PAGE_A, SEED, [], [], [])

        seed = graph.get(SEED)
        page = graph.get(PAGE_A)
        self.assertEqual([page_id], seed.children)
        self.assertEqual([seed.id], page.parents)
        self.assertEqual([], seed.parents)

    def test_only_children_already_in_graph_become_edges(self) -> None:
        graph = LinkGraph()
        graph.claim(PAGE_B)

        graph.update(SEED, None, [PAGE_A, PAGE_B], [], [])

        self.assertEqual([graph.link_id(PAGE_B)], graph.get(SEED).children)
        self.assertFalse(graph.visited(PAGE_A))

    def test_unknown_parent_is_ignored(self) -> None:
        graph = LinkGraph()
        graph.update(PAGE_A, "https://elsewhere.org/", [], [], [])

        self.assertEqual([], graph.get(PAGE_A).parents)
        self.assertEqual(1, len(graph))

    def test_remerging_the_same_page_does_not_duplicate(self) -> None:
        graph = LinkGraph()
        logo = Image(link="https://example.com/logo.png", alt="Logo")
        graph.update(SEED, None, [], [], [])

        graph.update(PAGE_A, SEED, [SEED], [logo], ["About"])
        first = graph.to_json()
        graph.update(PAGE_A, SEED, [SEED], [logo], ["About"])

        self.assertEqual(first, graph.to_json())
        page = graph.get(PAGE_A)
        self.assertEqual([0], page.parents)
        self.assertEqual([0], page.children)
        self.assertEqual([logo], page.images)
        self.assertEqual(["About"], page.titles)

    def test_repeats_within_one_extraction_are_kept(self) -> None:
        graph = LinkGraph()
        logo = Image(link="https://example.com/logo.png", alt="Logo")
        footer = Image(link="https://example.com/logo.png", alt="Logo")

        graph.update(SEED, None, [], [logo, footer], ["Docs", "Docs", "Intro"])
        graph.update(SEED, None, [], [logo], ["Docs", "Intro", "Setup"])

        page = graph.get(SEED)
        self.assertEqual([logo, footer], page.images)
        self.assertEqual(["Docs", "Docs", "Intro", "Setup"], page.titles)

    def test_edges_always_name_existing_records(self) -> None:
        graph = LinkGraph()
        graph.update(SEED, None, [PAGE_A, PAGE_B], [], [])
        graph.update(PAGE_A, SEED, [PAGE_B, SEED], [], [])
        graph.update(PAGE_B, PAGE_A, [SEED, PAGE_A], [], [])

        ids = {link_id for link_id, _ in graph}
        for _, link in graph:
            self.assertTrue(set(link.children) <= ids)
            self.assertTrue(set(link.parents) <= ids)

    def test_broken_index_raises_link_graph_error(self) -> None:
        graph = LinkGraph()
        graph._link_ids[SEED] = 99

        with self.assertRaises(LinkGraphError):
            graph.update(PAGE_A, SEED, [], [], [])


class LinkGraphReadTests(unittest.TestCase):
    def test_get_returns_a_copy(self) -> None:
        graph = LinkGraph()
        graph.update(SEED, None, [], [], ["Home"])

        snapshot = graph.get(SEED)
        snapshot.titles.append("Mutated")

        self.assertEqual(["Home"], graph.get(SEED).titles)
        self.assertIsNone(graph.get(PAGE_A))

    def test_getitem_missing_id_raises_key_error(self) -> None:
        graph = LinkGraph()
        with self.assertRaises(KeyError):
            graph[0]

    def test_iteration_is_restartable_and_in_id_order(self) -> None:
        graph = LinkGraph()
        for url in (SEED, PAGE_A, PAGE_B):
            graph.claim(url)

        first = [link_id for link_id, _ in graph]
        second = [link.url for _, link in graph]

        self.assertEqual([0, 1, 2], first)
        self.assertEqual([SEED, PAGE_A, PAGE_B], second)

    def test_to_json_shape(self) -> None:
        graph = LinkGraph()
        graph.update(SEED, None, [], [Image(link="https://example.com/x.gif")], ["Home"])

        payload = graph.to_json()

        self.assertEqual({"0"}, set(payload["links"]))
        self.assertEqual({SEED: 0}, payload["link_ids"])
        self.assertEqual(
            {
                "id": 0,
                "url": SEED,
                "children": [],
                "parents": [],
                "images": [{"link": "https://example.com/x.gif", "alt": ""}],
                "titles": ["Home"],
            },
            payload["links"]["0"],
        )


if __name__ == "__main__":
    unittest.main()
