"""Tests for lazy, coalescing partition loading."""

from __future__ import annotations

import threading
import unittest

from symbolsearch.errors import PartitionFetchError
from symbolsearch.index.loader import IndexLoader
from symbolsearch.index.partitions import NOT_LOADED, PartitionId, PartitionStore

P_PARTITION = """var searchData=
[
  ['path',['path',['../structtum__font.html#a71',1,'tum_font']]],
  ['pink',['Pink',['../group__tum__draw.html#ga57',1,'TUM_Draw.h']]]
];
"""


class _FakeFetcher:
    def __init__(self, files: dict[str, str], gate: threading.Event | None = None) -> None:
        self.files = files
        self.gate = gate
        self.calls: list[str] = []
        self.started = threading.Event()
        self._lock = threading.Lock()

    def fetch(self, filename: str) -> str:
        with self._lock:
            self.calls.append(filename)
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=2.0)
        if filename not in self.files:
            raise PartitionFetchError(filename, reason="404 Not Found")
        return self.files[filename]


class _ExplodingFetcher:
    def fetch(self, filename: str) -> str:
        raise RuntimeError(f"boom {filename}")


class IndexLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = PartitionStore()

    def _loader(self, fetcher: object, **kwargs) -> IndexLoader:
        loader = IndexLoader(self.store, fetcher, **kwargs)
        self.addCleanup(loader.close)
        return loader

    def test_load_parses_and_caches_partition(self) -> None:
        fetcher = _FakeFetcher({"all_p.js": P_PARTITION})
        loader = self._loader(fetcher)

        result = loader.load(PartitionId("p")).result(timeout=2.0)

        self.assertFalse(result.failed)
        self.assertEqual([entry.key for entry in result.entries], ["path", "pink"])
        self.assertEqual(self.store.entries_of(PartitionId("p")), result.entries)
        self.assertEqual(fetcher.calls, ["all_p.js"])

    def test_cached_partition_resolves_without_fetch(self) -> None:
        fetcher = _FakeFetcher({"all_p.js": P_PARTITION})
        loader = self._loader(fetcher)
        loader.load(PartitionId("p")).result(timeout=2.0)

        future = loader.load(PartitionId("p"))

        self.assertTrue(future.done())
        self.assertEqual(len(future.result().entries), 2)
        self.assertEqual(fetcher.calls, ["all_p.js"])

    def test_concurrent_loads_share_one_fetch(self) -> None:
        gate = threading.Event()
        fetcher = _FakeFetcher({"all_p.js": P_PARTITION}, gate=gate)
        loader = self._loader(fetcher)

        first = loader.load(PartitionId("p"))
        self.assertTrue(fetcher.started.wait(timeout=2.0))
        second = loader.load(PartitionId("p"))
        self.assertTrue(loader.is_loading(PartitionId("p")))
        gate.set()

        self.assertIs(first, second)
        self.assertEqual(first.result(timeout=2.0).entries, second.result(timeout=2.0).entries)
        self.assertEqual(fetcher.calls, ["all_p.js"])

    def test_failed_fetch_resolves_to_empty_result_and_is_not_retried(self) -> None:
        fetcher = _FakeFetcher({})
        loader = self._loader(fetcher)

        with self.assertLogs("symbolsearch.index.loader", level="WARNING"):
            result = loader.load(PartitionId("z")).result(timeout=2.0)
        again = loader.load(PartitionId("z"))

        self.assertTrue(result.failed)
        self.assertEqual(result.entries, ())
        self.assertIn("404", result.reason)
        self.assertTrue(again.done())
        self.assertTrue(again.result().failed)
        self.assertEqual(fetcher.calls, ["all_z.js"])
        self.assertIs(self.store.entries_of(PartitionId("z")), NOT_LOADED)

    def test_reset_allows_a_new_fetch(self) -> None:
        fetcher = _FakeFetcher({})
        loader = self._loader(fetcher)
        with self.assertLogs("symbolsearch.index.loader", level="WARNING"):
            loader.load(PartitionId("p")).result(timeout=2.0)

        fetcher.files["all_p.js"] = P_PARTITION
        self.store.reset(PartitionId("p"))
        result = loader.load(PartitionId("p")).result(timeout=2.0)

        self.assertFalse(result.failed)
        self.assertEqual(fetcher.calls, ["all_p.js", "all_p.js"])

    def test_malformed_file_marks_partition_failed(self) -> None:
        loader = self._loader(_FakeFetcher({"all_p.js": "<html>not found</html>"}))

        with self.assertLogs("symbolsearch.index.loader", level="WARNING"):
            result = loader.load(PartitionId("p")).result(timeout=2.0)

        self.assertTrue(result.failed)
        self.assertIsNotNone(self.store.failure_of(PartitionId("p")))

    def test_unexpected_fetcher_error_never_reaches_caller(self) -> None:
        loader = self._loader(_ExplodingFetcher())

        with self.assertLogs("symbolsearch.index.loader", level="ERROR"):
            result = loader.load(PartitionId("q")).result(timeout=2.0)

        self.assertTrue(result.failed)
        self.assertIn("RuntimeError", result.reason)

    def test_malformed_entries_are_counted_and_rest_kept(self) -> None:
        text = P_PARTITION.replace("]]]\n];", "]]],\n  ['pad',['pad']]\n];")
        loader = self._loader(_FakeFetcher({"all_p.js": text}))

        result = loader.load(PartitionId("p")).result(timeout=2.0)

        self.assertEqual(result.dropped, 1)
        self.assertEqual([entry.key for entry in result.entries], ["path", "pink"])

    def test_section_selects_partition_file(self) -> None:
        fetcher = _FakeFetcher({"functions_p.js": P_PARTITION})
        loader = self._loader(fetcher, section="functions")

        result = loader.load(PartitionId("p")).result(timeout=2.0)

        self.assertFalse(result.failed)
        self.assertEqual(fetcher.calls, ["functions_p.js"])

    def test_closed_loader_reports_failure(self) -> None:
        fetcher = _FakeFetcher({"all_p.js": P_PARTITION})
        loader = self._loader(fetcher)
        loader.close()

        result = loader.load(PartitionId("p")).result(timeout=2.0)

        self.assertTrue(result.failed)
        self.assertEqual(fetcher.calls, [])


if __name__ == "__main__":
    unittest.main()
