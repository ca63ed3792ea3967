"""Tests for engine creation, configuration, display and logging helpers"""

import logging
import os
import unittest
from unittest import mock

import trace_trees
from trace_trees.avl import AVLEngine
from trace_trees.bplus_tree import BPlusTreeEngine
from trace_trees.config import DEFAULT_MIN_DEGREE, EngineConfig
from trace_trees.display import PRIMARY, RESET, print_pretty
from trace_trees.factory import ENGINE_CLASSES, create_engine, resolve_family
from trace_trees.logging_config import configure_from, get_logger, setup_logging
from trace_trees.parsing import InputValidationError
from trace_trees.red_black import RedBlackEngine


class TestFactory(unittest.TestCase):

    def test_every_family(self):
        for family, cls in ENGINE_CLASSES.items():
            with self.subTest(family=family):
                engine = create_engine(family)
                self.assertIsInstance(engine, cls)
                self.assertEqual(engine.family, family)

    def test_aliases(self):
        self.assertIsInstance(create_engine("B+Tree"), BPlusTreeEngine)
        self.assertIsInstance(create_engine("red-black"), RedBlackEngine)
        self.assertIsInstance(create_engine(" AVL "), AVLEngine)
        self.assertEqual(resolve_family("b-tree"), "btree")

    def test_unknown_family(self):
        with self.assertRaises(ValueError):
            create_engine("splay")

    def test_min_degree(self):
        self.assertEqual(create_engine("btree").min_degree, DEFAULT_MIN_DEGREE)
        self.assertEqual(create_engine("btree", min_degree=4).min_degree, 4)
        self.assertEqual(create_engine("bplus_tree", min_degree="5").min_degree, 5)
        with self.assertRaises(InputValidationError):
            create_engine("btree", min_degree=0)

    def test_min_degree_rejected_for_binary_and_trie(self):
        for family in ("bst", "avl", "red_black", "trie"):
            with self.subTest(family=family):
                with self.assertRaises(ValueError):
                    create_engine(family, min_degree=3)

    def test_unexpected_call_parameter(self):
        engine = create_engine("bst")
        with self.assertRaises(TypeError):
            engine.insert_with_trace(None, 1, min_degree=3)

    def test_public_names_resolve(self):
        self.assertEqual(len(trace_trees.__all__), len(set(trace_trees.__all__)))
        for name in trace_trees.__all__:
            with self.subTest(name=name):
                self.assertTrue(hasattr(trace_trees, name))

    def test_engines_keep_separate_ids(self):
        a, b = create_engine("bst"), create_engine("bst")
        root_a = a.build([1, 2, 3])
        root_b = b.build([1, 2, 3])
        self.assertEqual(root_a.id, root_b.id)

    def test_config_min_degree_used(self):
        engine = create_engine("btree", config=EngineConfig(min_degree=2))
        self.assertEqual(engine.min_degree, 2)

    def test_config_disables_snapshots(self):
        engine = create_engine("avl", config=EngineConfig(record_snapshots=False))
        _, steps = engine.build_with_trace([1, 2, 3])
        self.assertTrue(all(not step.has_snapshot for step in steps))


class TestEngineConfig(unittest.TestCase):

    def test_defaults(self):
        config = EngineConfig()
        self.assertEqual(config.min_degree, DEFAULT_MIN_DEGREE)
        self.assertTrue(config.record_snapshots)
        self.assertEqual(config.log_level, "INFO")

    @mock.patch.dict(os.environ, {
        "TRACE_TREES_MIN_DEGREE": "4",
        "TRACE_TREES_RECORD_SNAPSHOTS": "false",
        "TRACE_TREES_LOG_LEVEL": "DEBUG",
    })
    def test_from_env(self):
        config = EngineConfig.from_env()
        self.assertEqual(config.min_degree, 4)
        self.assertFalse(config.record_snapshots)
        self.assertEqual(config.log_level, "DEBUG")

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_from_env_defaults(self):
        self.assertEqual(EngineConfig.from_env(), EngineConfig())


class TestPrintPretty(unittest.TestCase):

    def test_empty(self):
        self.assertEqual(print_pretty(None), "Tree: Empty")

    def test_binary_levels(self):
        root = create_engine("bst").build([2, 1, 3])
        self.assertEqual(print_pretty(root).splitlines(), [
            "BinaryNode (height 2):",
            "L0: 2",
            "L1: 1  3",
        ])

    def test_red_black_colour(self):
        root = create_engine("red_black").build([2, 1, 3])
        plain = print_pretty(root)
        self.assertIn("L1: 1R  3R", plain)
        coloured = print_pretty(root, colour=True)
        self.assertIn(f"{PRIMARY}1R{RESET}", coloured)

    def test_multiway_and_trie_labels(self):
        root = create_engine("btree", min_degree=2).build([1, 2, 3, 4])
        self.assertIn("L0: [2]", print_pretty(root))
        trie = create_engine("trie").build(["hi"])
        self.assertIn("L2: i*", print_pretty(trie))

    def test_rejects_non_node(self):
        with self.assertRaises(TypeError):
            print_pretty([1, 2, 3])


class TestLogging(unittest.TestCase):

    def test_module_loggers_share_project_root(self):
        self.assertEqual(get_logger("Engines").name, "trace_trees.Engines")
        self.assertEqual(get_logger("trace_trees.base").name, "trace_trees.base")

    def test_setup_is_idempotent(self):
        previous = logging.getLogger("trace_trees").level
        self.addCleanup(logging.getLogger("trace_trees").setLevel, previous)
        first = setup_logging(level=logging.WARNING)
        handlers = list(first.handlers)
        second = setup_logging(level="debug")
        self.assertIs(first, second)
        self.assertEqual(second.handlers, handlers)
        self.assertEqual(second.level, logging.DEBUG)

    def test_configure_from_config(self):
        previous = logging.getLogger("trace_trees").level
        self.addCleanup(logging.getLogger("trace_trees").setLevel, previous)
        logger = configure_from(EngineConfig(log_level="ERROR"))
        self.assertEqual(logger.level, logging.ERROR)

    def test_unknown_level(self):
        with self.assertRaises(ValueError):
            setup_logging(level="LOUD")

    def test_operations_log_at_info(self):
        engine = create_engine("bst")
        with self.assertLogs("trace_trees.TraceTrees", level="INFO") as cm:
            engine.insert_with_trace(None, 1)
        self.assertTrue(any("Inserting 1 into bst tree" in line for line in cm.output))


if __name__ == "__main__":
    unittest.main()
