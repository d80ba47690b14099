import unittest
import numpy as np
from PIL import Image
from layerpalette.config import ClusterConfig
from layerpalette.debounce import Debouncer
from layerpalette.quantizer import composite_layers
from layerpalette.session import PaletteSession, SessionState
from layerpalette.types import SampleSet


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestDebouncer(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.debouncer = Debouncer(0.3, clock=self.clock)
        self.calls = []

    def test_last_write_wins(self):
        for value in ("a", "b", "c"):
            self.debouncer.schedule(lambda v=value: self.calls.append(v))
            self.clock.advance(0.1)
        self.assertFalse(self.debouncer.run_pending())
        self.clock.advance(0.25)
        self.assertTrue(self.debouncer.run_pending())
        self.assertEqual(self.calls, ["c"])
        self.assertFalse(self.debouncer.pending)
        self.assertEqual(self.debouncer.generation, 3)

    def test_cancel_and_flush(self):
        self.debouncer.schedule(lambda: self.calls.append("x"))
        self.assertTrue(self.debouncer.cancel())
        self.assertFalse(self.debouncer.cancel())
        self.clock.advance(1)
        self.assertFalse(self.debouncer.run_pending())

        self.debouncer.schedule(lambda: self.calls.append("y"))
        self.assertTrue(self.debouncer.flush())
        self.assertFalse(self.debouncer.flush())
        self.assertEqual(self.calls, ["y"])


class TestPaletteSession(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.config = ClusterConfig(k=3, seed=0, verbose=False)

        # flat 4x4 image, one color
        self.flat = np.zeros((4, 4, 4), dtype=np.uint8)
        self.flat[...] = (255, 0, 255, 255)

        # two color regions: left half red, right half blue
        self.split = np.zeros((6, 8, 4), dtype=np.uint8)
        self.split[..., 3] = 255
        self.split[:, :4, 0] = 220
        self.split[:, 4:, 2] = 220

    def make_session(self, **changes):
        config = self.config.with_changes(**changes) if changes else self.config
        return PaletteSession(config, clock=self.clock)

    def test_flat_image_with_extra_clusters(self):
        session = self.make_session()
        session.load_buffer(self.flat, 4, 4)
        color = (1.0, 0.0, 1.0)
        self.assertEqual(len(session.centroids), 3)
        for centroid in session.centroids:
            self.assertEqual(centroid.rgb, color)
        self.assertTrue(np.all(session.labels == 0))
        self.assertEqual(session.coverage, [1.0, 0.0, 0.0])
        self.assertEqual(len(session.layers), 3)
        self.assertTrue(np.all(session.layers[1][..., 3] == 0))
        self.assertTrue(np.all(session.layers[2][..., 3] == 0))
        np.testing.assert_array_equal(session.recolored, self.flat)

    def test_layers_track_cluster_count(self):
        session = self.make_session()
        session.load_buffer(self.split, 8, 6)
        self.assertEqual(len(session.layers), 3)
        self.assertEqual(session.render_count, 1)

        session.set_cluster_count(2)
        self.assertEqual(session.config.k, 2)
        self.assertEqual(len(session.centroids), 2)
        self.assertEqual(len(session.layers), 2)
        self.assertEqual(session.render_count, 2)
        np.testing.assert_array_equal(composite_layers(session.layers), session.recolored)

        session.set_cluster_count(0)
        self.assertEqual(session.config.k, 1)
        self.assertEqual(len(session.layers), 1)

    def test_weight_change_refits(self):
        session = self.make_session()
        session.load_buffer(self.split, 8, 6)
        session.set_weights(spatial_weight=5.0)
        self.assertEqual(session.config.spatial_weight, 5.0)
        self.assertEqual(session.config.color_weight, 1.0)
        self.assertEqual(session.render_count, 2)
        self.assertEqual(session.state, SessionState.IDLE)

        session.set_weights()
        self.assertEqual(session.render_count, 2)
        with self.assertRaises(ValueError):
            session.set_weights(color_weight=-1)

    def test_weight_change_refits_from_cached_samples(self):
        # 8x8 checkerboard of two similar reds
        board = np.zeros((8, 8, 4), dtype=np.uint8)
        board[..., 3] = 255
        parity = np.add.outer(np.arange(8), np.arange(8)) % 2
        board[parity == 0, :3] = (220, 30, 30)
        board[parity == 1, :3] = (150, 30, 30)

        session = self.make_session(k=2, spatial_weight=0.0)
        session.load_buffer(board, 8, 8)

        # pin the cached samples so the seeds sit in opposite top corners
        pixels = session.pixels
        order = [0, 7] + [i for i in range(64) if i not in (0, 7)]
        samples = SampleSet(rgb=pixels.rgb[order], xy=pixels.xy[order])
        session.samples = samples

        session.set_weights(color_weight=1.0)
        self.assertIs(session.samples, samples)
        np.testing.assert_array_equal(session.labels.reshape(8, 8), parity)

        session.set_weights(spatial_weight=1000.0)
        self.assertIs(session.samples, samples)
        self.assertIs(session.pixels, pixels)
        labels = session.labels.reshape(8, 8)
        self.assertTrue(np.all(labels[:, :4] == 0))
        self.assertTrue(np.all(labels[:, 4:] == 1))
        self.assertTrue(np.all(session.layers[0][:, :4, 3] == 255))
        self.assertTrue(np.all(session.layers[0][:, 4:, 3] == 0))
        self.assertEqual(session.render_count, 3)

    def test_new_image_replaces_state(self):
        session = self.make_session()
        session.load_buffer(self.flat, 4, 4)
        old_samples = session.samples
        session.edit_color(0, "#000000")
        self.assertTrue(session.updating)

        cyan = np.zeros((3, 5, 4), dtype=np.uint8)
        cyan[...] = (0, 255, 255, 255)
        session.load_buffer(cyan, 5, 3)

        self.assertFalse(session.updating)
        self.assertIsNot(session.samples, old_samples)
        self.assertEqual(len(session.labels), 15)
        self.assertEqual(session.hex_palette, ["#00ffff"] * 3)
        self.assertEqual(session.recolored.shape, (3, 5, 4))
        np.testing.assert_array_equal(session.recolored, cyan)
        self.assertEqual(len(session.layers), 3)
        for layer in session.layers:
            self.assertEqual(layer.shape, (3, 5, 4))
        self.assertEqual(session.render_count, 2)

        self.clock.advance(1)
        self.assertFalse(session.run_pending())
        self.assertEqual(session.render_count, 2)
        self.assertEqual(session.hex_palette[0], "#00ffff")

    def test_color_edits_are_debounced(self):
        session = self.make_session()
        session.load_buffer(self.flat, 4, 4)
        labels = session.labels.copy()
        xy = session.centroids[0].xy

        session.edit_color(0, "#ff0000")
        self.clock.advance(0.1)
        session.edit_color(0, "#00ff00")
        self.assertEqual(session.hex_palette[0], "#00ff00")
        self.assertEqual(session.centroids[0].xy, xy)
        self.assertTrue(session.updating)

        self.clock.advance(0.25)
        self.assertFalse(session.run_pending())
        self.assertEqual(session.render_count, 1)

        self.clock.advance(0.1)
        self.assertTrue(session.run_pending())
        self.assertEqual(session.render_count, 2)
        self.assertFalse(session.updating)
        np.testing.assert_array_equal(session.labels, labels)
        self.assertTrue(np.all(session.recolored[..., :3] == (0, 255, 0)))

    def test_refit_cancels_pending_recolor(self):
        session = self.make_session()
        session.load_buffer(self.split, 8, 6)
        session.edit_color(1, (0.0, 0.0, 0.0))
        session.set_weights(color_weight=2.0)
        self.assertFalse(session.updating)
        self.assertEqual(session.render_count, 2)
        self.clock.advance(1)
        self.assertFalse(session.run_pending())
        self.assertEqual(session.render_count, 2)

    def test_flush_and_callback(self):
        rendered = []
        session = PaletteSession(self.config, clock=self.clock, on_render=rendered.append)
        session.load_buffer(self.flat, 4, 4)
        session.edit_color(0, (0.0, 0.0, 1.0))
        self.assertTrue(session.flush())
        self.assertEqual(len(rendered), 2)
        self.assertTrue(np.all(rendered[-1].recolored[..., :3] == (0, 0, 255)))

    def test_invalid_edits(self):
        session = self.make_session()
        session.load_buffer(self.flat, 4, 4)
        with self.assertRaises(IndexError):
            session.edit_color(3, "#000000")
        with self.assertRaises(ValueError):
            session.edit_color(0, "#zzzzzz")
        with self.assertRaises(ValueError):
            session.edit_color(0, (1.5, 0.0, 0.0))
        self.assertFalse(session.updating)

    def test_no_image_is_noop(self):
        session = self.make_session()
        session.set_weights(color_weight=3.0)
        session.set_cluster_count(4)
        session.edit_color(0, "#ffffff")
        self.assertEqual(session.config.k, 4)
        self.assertFalse(session.loaded)
        self.assertIsNone(session.recolored)
        self.assertEqual(session.layers, [])
        self.assertEqual(session.render_count, 0)

        session.load_buffer(np.zeros(0, dtype=np.uint8), 0, 0)
        self.assertFalse(session.loaded)

        transparent = np.zeros((3, 3, 4), dtype=np.uint8)
        session.load_buffer(transparent, 3, 3)
        self.assertFalse(session.loaded)
        self.assertEqual(session.render_count, 0)

    def test_load_pil_image(self):
        session = self.make_session()
        image = Image.new("RGB", (5, 3), (255, 255, 0))
        session.load_image(image)
        self.assertTrue(session.loaded)
        self.assertEqual(session.recolored.shape, (3, 5, 4))
        self.assertEqual(session.hex_palette[0], "#ffff00")


if __name__ == '__main__':
    unittest.main()
