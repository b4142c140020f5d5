import os
import tempfile
import unittest

import config_manager


def scripted_input(*answers):
    """按顺序返回预设答案的 input 替身"""
    queue = list(answers)
    return lambda prompt="": queue.pop(0)


class TestAliasesAndProjectConfig(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.data_root = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def test_alias_round_trip(self):
        self.assertEqual(config_manager.load_project_aliases(self.data_root), {})
        config_manager.save_project_aliases(self.data_root, {"web": "/work/web"})
        self.assertEqual(config_manager.get_path_from_alias(self.data_root, "web"), "/work/web")
        self.assertIsNone(config_manager.get_path_from_alias(self.data_root, "api"))

    def test_corrupt_json_is_ignored(self):
        with open(os.path.join(self.data_root, "projects.json"), "w") as f:
            f.write("{not json")
        self.assertEqual(config_manager.load_project_aliases(self.data_root), {})

    def test_project_data_path_uses_repo_name(self):
        path = config_manager.get_project_data_path(self.data_root, "/work/team-app/")
        self.assertEqual(path, os.path.join(self.data_root, "team-app"))

    def test_config_wizard_saves_alias_and_defaults(self):
        with tempfile.TemporaryDirectory() as repo:
            alias = config_manager.run_interactive_config_wizard(
                self.data_root, repo, input_func=scripted_input("team", "week", "html", "y")
            )
            self.assertEqual(alias, "team")
            self.assertEqual(
                config_manager.get_path_from_alias(self.data_root, "team"),
                os.path.abspath(repo),
            )
            project_path = config_manager.get_project_data_path(self.data_root, repo)
            self.assertEqual(
                config_manager.load_project_config(project_path),
                {"default_view": "week", "default_format": "html", "hide_merges": True},
            )

    def test_config_wizard_rejects_invalid_choice(self):
        with tempfile.TemporaryDirectory() as repo:
            config_manager.run_interactive_config_wizard(
                self.data_root, repo, input_func=scripted_input("", "month", "", "")
            )
            project_path = config_manager.get_project_data_path(self.data_root, repo)
            saved = config_manager.load_project_config(project_path)
            self.assertEqual(saved["default_view"], "day")
            self.assertEqual(saved["default_format"], "text")
            self.assertFalse(saved["hide_merges"])

    def test_cleanup_removes_exports_only(self):
        project = os.path.join(self.data_root, "team")
        os.makedirs(project)
        for name in ("TeamStatus_day.html", "TeamStatus_week.json", "config.json"):
            with open(os.path.join(project, name), "w") as f:
                f.write("{}")
        config_manager.run_interactive_cleanup_wizard(
            self.data_root, project, "team", "TeamStatus", input_func=scripted_input("1")
        )
        self.assertEqual(os.listdir(project), ["config.json"])

    def test_full_reset_removes_alias(self):
        project = os.path.join(self.data_root, "team")
        os.makedirs(project)
        config_manager.save_project_aliases(self.data_root, {"team": "/work/team"})
        config_manager.run_interactive_cleanup_wizard(
            self.data_root, project, "team", "TeamStatus", input_func=scripted_input("2", "yes")
        )
        self.assertFalse(os.path.exists(project))
        self.assertEqual(config_manager.load_project_aliases(self.data_root), {})


if __name__ == "__main__":
    unittest.main()
