"""Unit tests for the multi-start annealing search.

This test suite validates anneal_search() and SimulatedAnnealingSearch.
"""

import unittest
import sys
import tempfile
import zlib
from pathlib import Path
import numpy as np

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from annealing_search.config import AnnealingConfig, SearchConfig, TrackingConfig
from annealing_search.dataset import DatasetDescriptor
from annealing_search.evaluators import CallableEvaluator, EvaluatorCapabilities
from annealing_search.exceptions import (
    ConfigurationError, IncompatibleEvaluatorError, SearchSpaceError
)
from annealing_search.search import SimulatedAnnealingSearch, anneal_search


def count_merit(subset):
    """Merit growing with the number of selected attributes."""
    return subset.count() / float(subset.num_attributes)


def rugged_merit(subset):
    """Deterministic pseudo-random merit with many local optima."""
    return zlib.crc32(subset.mask.tobytes()) / 2.0 ** 32


class CountingEvaluator(CallableEvaluator):
    """CallableEvaluator that records how often it is called."""

    def __init__(self, func, label_aware=False):
        super().__init__(func, label_aware=label_aware)
        self.calls = 0

    def evaluate_subset(self, subset):
        self.calls += 1
        return super().evaluate_subset(subset)


class NotASubsetEvaluator:
    """Evaluator that scores single attributes only."""

    def __init__(self):
        self.calls = 0

    def evaluate_attribute(self, index):
        self.calls += 1
        return 0.0

    def evaluate_subset(self, subset):
        self.calls += 1
        return 0.0


class TestAnnealSearch(unittest.TestCase):
    """Test the functional search entry point."""

    def test_count_scenario(self):
        """Test that a monotone merit selects every attribute."""
        result = anneal_search(
            CallableEvaluator(count_merit),
            num_attributes=5,
            starting_subset=[0, 2],
            config=AnnealingConfig(iterations=1)
        )

        self.assertEqual(result.subset, [0, 1, 2, 3, 4])
        self.assertEqual(result.merit, 1.0)
        self.assertEqual(result.iterations[0].initial_subset, [0, 2])

    def test_runs_configured_iterations(self):
        """Test that exactly the configured number of iterations run."""
        result = anneal_search(
            CallableEvaluator(count_merit), 6,
            config=AnnealingConfig(iterations=4)
        )
        self.assertEqual(len(result.iterations), 4)
        self.assertEqual([it.iteration for it in result.iterations], [0, 1, 2, 3])

    def test_determinism(self):
        """Test that a fixed seed reproduces the search exactly."""
        config = AnnealingConfig(random_seed=11, iterations=3)
        first = anneal_search(CallableEvaluator(rugged_merit), 8, config=config)
        second = anneal_search(CallableEvaluator(rugged_merit), 8, config=config)

        self.assertEqual(first.subset, second.subset)
        self.assertEqual(first.merit, second.merit)
        self.assertEqual(
            [(it.subset, it.steps) for it in first.iterations],
            [(it.subset, it.steps) for it in second.iterations]
        )

    def test_label_exclusion(self):
        """Test that the label is dropped from the start set and never returned."""
        evaluator = CallableEvaluator(count_merit, label_aware=True)
        result = anneal_search(
            evaluator, 6,
            label_index=3,
            starting_subset=[0, 3, 5],
            config=AnnealingConfig(iterations=3)
        )

        self.assertNotIn(3, result.subset)
        self.assertEqual(result.iterations[0].initial_subset, [0, 5])
        for iteration in result.iterations:
            self.assertNotIn(3, iteration.initial_subset)
            self.assertNotIn(3, iteration.subset)

    def test_label_ignored_for_unsupervised_evaluator(self):
        """Test that an evaluator without a label can select every index."""
        result = anneal_search(
            CallableEvaluator(count_merit, label_aware=False), 5,
            label_index=3,
            config=AnnealingConfig(iterations=2)
        )
        self.assertEqual(result.subset, [0, 1, 2, 3, 4])

    def test_monotonic_global_best(self):
        """Test that the global best never decreases across iterations."""
        result = anneal_search(
            CallableEvaluator(rugged_merit), 8,
            config=AnnealingConfig(random_seed=5, iterations=6)
        )

        bests = [it.best_merit for it in result.iterations]
        self.assertEqual(bests, sorted(bests))
        self.assertEqual(result.merit, max(it.merit for it in result.iterations))

        for previous, current in zip(result.iterations, result.iterations[1:]):
            self.assertEqual(current.new_best, current.merit > previous.best_merit)

    def test_ties_keep_first_result(self):
        """Test that equal merits keep the earliest subset."""
        result = anneal_search(
            CallableEvaluator(lambda subset: 0.5), 6,
            config=AnnealingConfig(iterations=4)
        )

        self.assertTrue(result.iterations[0].new_best)
        self.assertFalse(any(it.new_best for it in result.iterations[1:]))
        self.assertEqual(result.subset, result.iterations[0].subset)

    def test_later_iterations_start_random(self):
        """Test that only the first iteration uses the start set."""
        result = anneal_search(
            CallableEvaluator(lambda subset: 0.5), 30,
            starting_subset=[0, 1, 2, 3, 4, 5, 6, 7, 8, 9],
            config=AnnealingConfig(iterations=3)
        )

        self.assertEqual(result.iterations[0].initial_subset, list(range(10)))
        for iteration in result.iterations[1:]:
            # Random starts hold at most floor(sqrt(29)) attributes
            self.assertLessEqual(len(iteration.initial_subset), 5)

    def test_empty_start_set(self):
        """Test that an empty start set is a valid start."""
        result = anneal_search(
            CallableEvaluator(count_merit), 4,
            starting_subset=[],
            config=AnnealingConfig(iterations=1)
        )
        self.assertEqual(result.iterations[0].initial_subset, [])
        self.assertEqual(result.subset, [0, 1, 2, 3])

    def test_single_attribute(self):
        """Test the one-attribute space without a label."""
        result = anneal_search(
            CallableEvaluator(count_merit), 1,
            config=AnnealingConfig(iterations=2)
        )
        self.assertEqual(result.subset, [0])
        self.assertEqual(result.merit, 1.0)

    def test_label_only_space_is_rejected(self):
        """Test that a lone label attribute is refused before searching."""
        evaluator = CountingEvaluator(count_merit, label_aware=True)

        with self.assertRaises(SearchSpaceError):
            anneal_search(evaluator, 1, label_index=0)
        self.assertEqual(evaluator.calls, 0)

    def test_incompatible_evaluator(self):
        """Test that evaluators without subset capability fail fast."""
        evaluator = NotASubsetEvaluator()

        with self.assertRaises(IncompatibleEvaluatorError):
            anneal_search(evaluator, 5)
        self.assertEqual(evaluator.calls, 0)

    def test_capabilities_can_be_disabled(self):
        """Test an explicit descriptor overriding the evaluator's own."""
        with self.assertRaises(IncompatibleEvaluatorError):
            anneal_search(
                CallableEvaluator(count_merit), 5,
                capabilities=EvaluatorCapabilities(subset_capable=False)
            )

    def test_plain_callable_with_capabilities(self):
        """Test a bare function used together with a descriptor."""
        result = anneal_search(
            count_merit, 4,
            capabilities=EvaluatorCapabilities(subset_capable=True),
            config=AnnealingConfig(iterations=1)
        )
        self.assertEqual(result.subset, [0, 1, 2, 3])

    def test_start_set_out_of_range(self):
        """Test that start attributes beyond the dataset are rejected."""
        with self.assertRaises(ConfigurationError):
            anneal_search(CallableEvaluator(count_merit), 4, starting_subset=[0, 7])

    def test_label_in_start_set_is_reported(self):
        """Test that dropping the label from the start set is logged."""
        with self.assertLogs('annealing_search', level='WARNING') as captured:
            anneal_search(
                CallableEvaluator(count_merit, label_aware=True), 4,
                label_index=1,
                starting_subset=[1, 2],
                config=AnnealingConfig(iterations=1)
            )
        self.assertIn('label attribute 2', captured.output[0])

    def test_evaluator_errors_propagate(self):
        """Test that evaluator failures are logged and re-raised."""
        def failing_merit(subset):
            raise RuntimeError('model failed to fit')

        with self.assertLogs('annealing_search', level='ERROR') as captured:
            with self.assertRaises(RuntimeError):
                anneal_search(CallableEvaluator(failing_merit), 4, starting_subset=[0])
        self.assertIn('model failed to fit', captured.output[0])


class TestSimulatedAnnealingSearch(unittest.TestCase):
    """Test the stateful search engine."""

    def test_search_returns_best(self):
        """Test the returned list and best merit accessor."""
        engine = SimulatedAnnealingSearch(AnnealingConfig(iterations=2))
        selected = engine.search(CallableEvaluator(count_merit), DatasetDescriptor(5))

        self.assertEqual(selected, [0, 1, 2, 3, 4])
        self.assertEqual(engine.best_merit, 1.0)
        self.assertEqual(engine.best_subset, selected)

    def test_first_search_needs_dataset(self):
        """Test that the first search must describe the dataset."""
        engine = SimulatedAnnealingSearch()
        with self.assertRaises(SearchSpaceError):
            engine.search(CallableEvaluator(count_merit))

    def test_fresh_dataset_reseeds(self):
        """Test that describing the dataset again reproduces the search."""
        engine = SimulatedAnnealingSearch(AnnealingConfig(iterations=2, random_seed=3))
        dataset = DatasetDescriptor(8)

        first = engine.search(CallableEvaluator(rugged_merit), dataset)
        first_merit = engine.best_merit
        second = engine.search(CallableEvaluator(rugged_merit), dataset)

        self.assertEqual(first, second)
        self.assertEqual(first_merit, engine.best_merit)

    def test_reuse_dataset_continues_stream(self):
        """Test that a None dataset reuses the attribute count and random stream."""
        config = AnnealingConfig(iterations=2, random_seed=3)
        engine = SimulatedAnnealingSearch(config)
        engine.search(CallableEvaluator(rugged_merit), DatasetDescriptor(8))
        selected = engine.search(CallableEvaluator(rugged_merit))

        rng = np.random.RandomState(3)
        anneal_search(CallableEvaluator(rugged_merit), 8, config=config, rng=rng)
        expected = anneal_search(CallableEvaluator(rugged_merit), 8, config=config, rng=rng)

        self.assertEqual(selected, expected.subset)
        self.assertEqual(engine.best_merit, expected.merit)

    def test_reuse_resets_best(self):
        """Test that per-run best state does not leak between searches."""
        engine = SimulatedAnnealingSearch(AnnealingConfig(iterations=1))
        engine.search(CallableEvaluator(count_merit), DatasetDescriptor(4))
        self.assertEqual(engine.best_merit, 1.0)

        engine.search(CallableEvaluator(lambda subset: 0.25))
        self.assertEqual(engine.best_merit, 0.25)

    def test_selected_attribute_names_logged(self):
        """Test that the best subset is reported by attribute name."""
        engine = SimulatedAnnealingSearch(AnnealingConfig(iterations=1))
        dataset = DatasetDescriptor(3, label_index=2, attribute_names=['age', 'bmi', 'target'])

        with self.assertLogs('annealing_search', level='INFO') as captured:
            engine.search(CallableEvaluator(count_merit, label_aware=True), dataset)

        self.assertIn('Selected attributes: age, bmi', captured.output[-1])

    def test_label_from_dataset(self):
        """Test that a label-aware evaluator excludes the dataset's label."""
        engine = SimulatedAnnealingSearch(AnnealingConfig(iterations=2))
        selected = engine.search(
            CallableEvaluator(count_merit, label_aware=True),
            DatasetDescriptor(5, label_index=4)
        )
        self.assertEqual(selected, [0, 1, 2, 3])

    def test_start_set_option(self):
        """Test a start set configured through options."""
        engine = SimulatedAnnealingSearch()
        engine.set_options(['-I', '1', '-P', '1-3'])
        engine.search(
            CallableEvaluator(count_merit, label_aware=True),
            DatasetDescriptor(6, label_index=1)
        )

        self.assertEqual(engine.last_result.iterations[0].initial_subset, [0, 2])
        options = engine.get_options()
        self.assertEqual(options[options.index('-P') + 1], '1,3')

    def test_start_set_beyond_dataset(self):
        """Test that a start set naming missing attributes fails at search time."""
        engine = SimulatedAnnealingSearch(AnnealingConfig(start_set='1,10'))
        with self.assertRaises(ConfigurationError):
            engine.search(CallableEvaluator(count_merit), DatasetDescriptor(5))

    def test_invalid_options(self):
        """Test that malformed options are rejected when set."""
        engine = SimulatedAnnealingSearch()
        with self.assertRaises(ConfigurationError):
            engine.set_options(['-T', 'hot'])

    def test_summary(self):
        """Test the human-readable description."""
        engine = SimulatedAnnealingSearch()
        self.assertIn('random set', str(engine))

        engine.set_options(['-P', '2,4'])
        self.assertIn('Start set: 2,4', engine.summary())

    def test_incompatible_evaluator(self):
        """Test that the engine refuses non-subset evaluators."""
        engine = SimulatedAnnealingSearch()
        with self.assertRaises(IncompatibleEvaluatorError):
            engine.search(NotASubsetEvaluator(), DatasetDescriptor(5))

    def test_from_config_tracks_runs(self):
        """Test that a configured database receives every iteration."""
        temp_dir = tempfile.mkdtemp()
        config = SearchConfig(
            annealing=AnnealingConfig(iterations=3),
            tracking=TrackingConfig(db_path=str(Path(temp_dir) / 'runs.db'), log_level='WARNING')
        )

        engine = SimulatedAnnealingSearch.from_config(config)
        engine.search(CallableEvaluator(count_merit), DatasetDescriptor(5))

        run_id = engine.last_result.run_id
        iterations = engine.database.query_iterations(run_id=run_id)
        self.assertEqual(len(iterations), 3)

        runs = engine.database.query_runs()
        self.assertEqual(len(runs), 1)
        self.assertAlmostEqual(runs.loc[0, 'best_merit'], 1.0)


if __name__ == '__main__':
    unittest.main(verbosity=2)
