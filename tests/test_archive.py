"""Tests for the SQLite GraphArchive."""

from atlas.graph import GraphArchive


class TestGraphArchive:
    """Tests for saving and restoring graphs."""

    def test_load_missing(self, archive):
        assert archive.load("Nothing") is None
        assert archive.load_all() == []

    def test_save_and_load(self, archive, chain_graph):
        archive.save(chain_graph)
        assert archive.load("Test Subject") == chain_graph

    def test_save_replaces_subject(self, archive, chain_graph, graph_factory, node_factory):
        archive.save(chain_graph)
        replacement = graph_factory([node_factory("z")])
        archive.save(replacement)

        assert archive.load("Test Subject") == replacement
        assert len(archive.load_all()) == 1

    def test_delete(self, archive, chain_graph):
        archive.save(chain_graph)
        assert archive.delete("Test Subject") is True
        assert archive.delete("Test Subject") is False
        assert archive.load("Test Subject") is None

    def test_file_archive_persists(self, tmp_path, chain_graph):
        db_path = tmp_path / "graphs.db"
        GraphArchive(db_path).save(chain_graph)

        reopened = GraphArchive(db_path)
        assert [g.subject for g in reopened.load_all()] == ["Test Subject"]
