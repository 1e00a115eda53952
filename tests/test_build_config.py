from __future__ import annotations

from pathlib import Path
import unittest
from unittest.mock import patch

from cmake_ide.build_config import BUILD_TYPES, BuildConfig


class BuildConfigTests(unittest.TestCase):
    def test_starts_unset(self) -> None:
        config = BuildConfig()
        self.assertIsNone(config.get_build_dir())
        self.assertIsNone(config.get_query_dir())
        self.assertIsNone(config.get_reply_dir())
        self.assertIsNone(config.get_build_type())
        self.assertIsNone(config.launch_target)
        self.assertEqual(config.generate_options, [])

    def test_update_build_dir_derives_api_dirs(self) -> None:
        for raw in ("build", "/tmp/project/_build", "nested/dir with space"):
            config = BuildConfig()
            config.update_build_dir(raw)
            base = Path(raw)
            self.assertEqual(config.get_build_dir(), base)
            self.assertEqual(config.get_query_dir(), base / ".cmake" / "api" / "v1" / "query")
            self.assertEqual(config.get_reply_dir(), base / ".cmake" / "api" / "v1" / "reply")

    def test_update_build_dir_replaces_previous_paths(self) -> None:
        config = BuildConfig()
        config.update_build_dir("first")
        config.update_build_dir("second")
        self.assertEqual(config.get_query_dir(), Path("second/.cmake/api/v1/query"))
        self.assertEqual(config.get_reply_dir(), Path("second/.cmake/api/v1/reply"))

    def test_set_build_dir_leaves_derived_paths(self) -> None:
        config = BuildConfig()
        config.update_build_dir("first")
        config.set_build_dir("second")
        self.assertEqual(config.get_build_dir(), Path("second"))
        self.assertEqual(config.get_query_dir(), Path("first/.cmake/api/v1/query"))

    def test_build_type_passes_through_unknown_values(self) -> None:
        config = BuildConfig()
        config.set_build_type("Coverage")
        self.assertEqual(config.get_build_type(), "Coverage")

    def test_build_types_enumeration(self) -> None:
        self.assertEqual(BUILD_TYPES, ("Debug", "Release", "RelWithDebInfo", "MinSizeRel"))

    def test_get_cwd_prefers_source_dir(self) -> None:
        config = BuildConfig(source_dir=Path("/src/project"))
        self.assertEqual(config.get_cwd(), Path("/src/project"))

    def test_get_cwd_falls_back_to_process_cwd(self) -> None:
        with patch("cmake_ide.build_config.Path.cwd", return_value=Path("/work")):
            self.assertEqual(BuildConfig().get_cwd(), Path("/work"))

    def test_option_setters_copy_sequences(self) -> None:
        options = ["-G", "Ninja"]
        config = BuildConfig()
        config.set_generate_options(options)
        options.append("--fresh")
        self.assertEqual(config.generate_options, ["-G", "Ninja"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
