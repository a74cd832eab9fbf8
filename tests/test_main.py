import unittest
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from gomodgraph.__main__ import main, prepare_graph
from gomodgraph.config import Config
from gomodgraph.errors import BackendError


class TestPrepareGraph(unittest.TestCase):

    def setUp(self):
        self.cfg = Config(
            gitlab_token="secret",
            gitlab_base_url="https://gitlab.example.com",
            registry_prefix="gitlab.example.com/",
            cache_dir="/tmp/gomodgraph-test/",
        )

    @patch("gomodgraph.__main__.load_dependency_graph")
    @patch("gomodgraph.__main__.download")
    @patch("gomodgraph.__main__.ensure_cache_dir", return_value=True)
    def test_downloads_into_fresh_cache(self, mock_ensure, mock_download, mock_load):
        graph = prepare_graph(self.cfg)

        mock_download.assert_called_once()
        backend, cache_dir = mock_download.call_args[0]
        self.assertEqual(backend.name, "GitLab")
        self.assertEqual(cache_dir, "/tmp/gomodgraph-test/")
        self.assertIs(graph, mock_load.return_value)

    @patch("gomodgraph.__main__.load_dependency_graph")
    @patch("gomodgraph.__main__.download")
    @patch("gomodgraph.__main__.ensure_cache_dir", return_value=False)
    def test_reuses_existing_cache(self, mock_ensure, mock_download, mock_load):
        prepare_graph(self.cfg)

        mock_download.assert_not_called()
        mock_load.assert_called_once_with("/tmp/gomodgraph-test/")

    @patch("gomodgraph.__main__.load_dependency_graph")
    @patch("gomodgraph.__main__.ensure_cache_dir", return_value=False)
    @patch("gomodgraph.__main__.clean_cache")
    def test_clean_cache(self, mock_clean, mock_ensure, mock_load):
        self.cfg.clean_cache = True

        prepare_graph(self.cfg)

        mock_clean.assert_called_once_with("/tmp/gomodgraph-test/")

    @patch("gomodgraph.__main__.load_dependency_graph")
    @patch("gomodgraph.__main__.clean_cache")
    @patch("gomodgraph.__main__.download", side_effect=BackendError("401 Unauthorized"))
    @patch("gomodgraph.__main__.ensure_cache_dir", return_value=True)
    def test_failed_download_discards_cache(self, mock_ensure, mock_download, mock_clean, mock_load):
        with self.assertRaises(BackendError):
            prepare_graph(self.cfg)

        mock_clean.assert_called_once_with("/tmp/gomodgraph-test/")
        mock_load.assert_not_called()


class TestCli(unittest.TestCase):

    def test_missing_configuration_exits(self):
        runner = CliRunner()

        result = runner.invoke(main, [], env={"GITLAB_BASE_URL": "", "GITLAB_API_TOKEN": ""})

        self.assertEqual(result.exit_code, 1)

    @patch("gomodgraph.__main__.uvicorn.Server")
    @patch("gomodgraph.__main__.prepare_graph")
    def test_serves_graph(self, mock_prepare, mock_server):
        mock_prepare.return_value = MagicMock()
        runner = CliRunner()

        result = runner.invoke(
            main,
            ["--gitlab-base-url", "https://gitlab.example.com", "--mod", "group/app"],
            env={"GITLAB_API_TOKEN": "secret"},
        )

        self.assertEqual(result.exit_code, 0, result.output)
        mock_server.return_value.run.assert_called_once()
        sockets = mock_server.return_value.run.call_args[1]["sockets"]
        self.assertEqual(len(sockets), 1)
        sockets[0].close()

    @patch("gomodgraph.__main__.uvicorn.Server")
    @patch("gomodgraph.__main__.socket.socket")
    @patch("gomodgraph.__main__.prepare_graph")
    def test_port_in_use_exits(self, mock_prepare, mock_socket, mock_server):
        mock_prepare.return_value = MagicMock()
        mock_socket.return_value.bind.side_effect = OSError(98, "Address already in use")
        runner = CliRunner()

        result = runner.invoke(
            main,
            ["--gitlab-base-url", "https://gitlab.example.com", "--port", "8080"],
            env={"GITLAB_API_TOKEN": "secret"},
        )

        self.assertEqual(result.exit_code, 1)
        mock_socket.return_value.close.assert_called_once()
        mock_server.assert_not_called()


if __name__ == "__main__":
    unittest.main()
