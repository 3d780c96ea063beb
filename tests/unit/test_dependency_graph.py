"""Tests for the cache dependency graph."""

import pytest

from hateoas_resource.cache import CacheDependencyGraph


class TestCacheDependencyGraph:
    """Test suite for CacheDependencyGraph."""

    @pytest.fixture
    def graph(self):
        return CacheDependencyGraph()

    def test_add_registers_both_directions(self, graph):
        """Test edges are indexed both ways."""
        graph.add("/orders", "/orders/1")

        assert graph.get_dependents("/orders") == {"/orders/1"}
        assert graph.get_dependencies("/orders/1") == {"/orders"}
        assert "/orders" in graph
        assert len(graph) == 1

    def test_self_edge_ignored(self, graph):
        """Test a URI never depends on itself."""
        graph.add("/a", "/a")

        assert len(graph) == 0
        assert "/a" not in graph

    def test_duplicate_edges_collapse(self, graph):
        """Test duplicate edges."""
        graph.add("/a", "/b")
        graph.add("/a", "/b")

        assert len(graph) == 1

    def test_expand_is_transitive(self, graph):
        """Test expand follows dependents transitively."""
        graph.add("/a", "/b")
        graph.add("/b", "/c")
        graph.add("/x", "/y")

        assert graph.expand(["/a"]) == {"/a", "/b", "/c"}

    def test_expand_walks_towards_targets(self, graph):
        """Test expand also walks to targets."""
        graph.add("/list", "/item/1")
        graph.add("/list", "/item/2")

        # Invalidating one member reaches the list and, through it, the sibling
        assert graph.expand(["/item/1"]) == {"/item/1", "/list", "/item/2"}

    def test_expand_terminates_on_cycles(self, graph):
        """Test cycles end the walk."""
        graph.add("/a", "/b")
        graph.add("/b", "/a")

        assert graph.expand(["/a"]) == {"/a", "/b"}

    def test_expand_unknown_uri(self, graph):
        """Test expand of a URI with no edges."""
        assert graph.expand(["/nothing"]) == {"/nothing"}

    def test_remove_drops_every_edge(self, graph):
        """Test remove drops edges in both directions."""
        graph.add("/a", "/b")
        graph.add("/c", "/b")
        graph.add("/b", "/d")

        graph.remove("/b")

        assert "/b" not in graph
        assert graph.get_dependents("/a") == set()
        assert graph.get_dependencies("/d") == set()
        assert len(graph) == 0

    def test_remove_keeps_unrelated_edges(self, graph):
        """Test remove leaves other edges alone."""
        graph.add("/a", "/b")
        graph.add("/a", "/c")

        graph.remove("/b")

        assert graph.get_dependents("/a") == {"/c"}

    def test_clear(self, graph):
        """Test clear."""
        graph.add("/a", "/b")
        graph.clear()

        assert len(graph) == 0
