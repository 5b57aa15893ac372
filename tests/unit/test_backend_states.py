import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "formats"))

from gfxconv_formats import get_backend, list_dialects
from gfxconv_formats.c_format import CFormat
from gfxconv_formats.errors import OrderingViolation, ResourceOpenError
from gfxconv_formats.models import BackendState, Color, Palette, StreamState

PAL = Palette("p", (Color(1, 2, 3),))


class BackendStateTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.backend = CFormat()

    def tearDown(self):
        self.backend.close_all()
        self._tmp.cleanup()

    def open_both(self):
        self.backend.open_output(self.dir / "g.h", header=True)
        self.backend.open_output(self.dir / "g.c", header=False)

    def test_lifecycle_states(self):
        self.assertEqual(self.backend.state, BackendState.IDLE)
        self.open_both()
        self.assertEqual(self.backend.state, BackendState.STREAMS_OPEN)
        self.backend.print_header_header("g")
        self.backend.print_source_header("g.h")
        self.assertEqual(self.backend.state, BackendState.EMITTING)
        self.backend.print_end_header()
        self.assertEqual(self.backend.state, BackendState.FINALIZED)
        self.backend.close_all()
        self.assertEqual(self.backend.state, BackendState.CLOSED)

    def test_write_before_open_rejected(self):
        with self.assertRaises(OrderingViolation):
            self.backend.print_palette("p", PAL)

    def test_write_before_prologue_rejected(self):
        self.open_both()
        with self.assertRaises(OrderingViolation) as ctx:
            self.backend.print_palette_header("p", 1)
        self.assertEqual(ctx.exception.state, StreamState.OPEN.value)

    def test_prologue_only_once(self):
        self.open_both()
        self.backend.print_header_header("g")
        with self.assertRaises(OrderingViolation):
            self.backend.print_header_header("g")

    def test_write_after_end_header_rejected(self):
        self.open_both()
        self.backend.print_header_header("g")
        self.backend.print_end_header()
        with self.assertRaises(OrderingViolation):
            self.backend.print_palette_header("p", 1)

    def test_write_after_close_rejected(self):
        self.open_both()
        self.backend.print_source_header(None)
        self.backend.close_output(header=False)
        with self.assertRaises(OrderingViolation):
            self.backend.print_palette("p", PAL)

    def test_byte_needs_open_array(self):
        self.open_both()
        self.backend.print_source_header(None)
        with self.assertRaises(OrderingViolation):
            self.backend.print_byte(1)
        with self.assertRaises(OrderingViolation):
            self.backend.print_next_array_line(True)

    def test_no_new_definition_while_array_open(self):
        self.open_both()
        self.backend.print_source_header(None)
        self.backend.print_image("a", 3, 1, 1, 8)
        with self.assertRaises(OrderingViolation):
            self.backend.print_image("b", 3, 1, 1, 8)
        with self.assertRaises(OrderingViolation):
            self.backend.print_palette("p", PAL)

    def test_close_is_noop_when_never_opened(self):
        self.backend.close_output(header=True)
        self.backend.close_output(header=False)
        self.assertEqual(self.backend.state, BackendState.IDLE)

    def test_double_close_is_noop(self):
        self.open_both()
        self.backend.close_all()
        self.backend.close_all()
        self.assertEqual(self.backend.header.state, StreamState.CLOSED)

    def test_open_twice_rejected(self):
        self.backend.open_output(self.dir / "g.h", header=True)
        with self.assertRaises(OrderingViolation):
            self.backend.open_output(self.dir / "other.h", header=True)

    def test_buffered_until_checkpoint(self):
        self.open_both()
        self.backend.print_header_header("g")
        self.backend.print_transparent_index("p", 0)
        self.assertEqual((self.dir / "g.h").read_text(encoding="utf-8"), "")
        self.backend.print_end_header()
        self.assertIn("#define p_transparent_color_index 0", (self.dir / "g.h").read_text(encoding="utf-8"))

    def test_array_flushed_when_closed(self):
        self.open_both()
        self.backend.print_source_header(None)
        self.backend.print_compressed_image("z", 1)
        self.backend.print_byte(0xAB)
        self.assertEqual((self.dir / "g.c").read_text(encoding="utf-8"), "")
        self.backend.print_next_array_line(True)
        self.assertIn("0xAB,", (self.dir / "g.c").read_text(encoding="utf-8"))


class OpenFailureTests(unittest.TestCase):
    def test_open_failure_is_reported_with_path(self):
        backend = CFormat()
        with tempfile.TemporaryDirectory() as tmp:
            missing = Path(tmp) / "missing" / "g.h"
            with self.assertRaises(ResourceOpenError) as ctx:
                backend.open_output(missing, header=True)
            self.assertEqual(ctx.exception.path, missing)
            self.assertIsInstance(ctx.exception, OSError)
            self.assertEqual(backend.header.state, StreamState.FAILED)

    def test_writes_to_failed_stream_short_circuit(self):
        backend = CFormat()
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ResourceOpenError):
                backend.open_output(Path(tmp) / "missing" / "g.h", header=True)
            backend.open_output(Path(tmp) / "g.c", header=False)
            backend.print_header_header("g")
            backend.print_source_header("g.h")
            backend.print_palette("p", PAL)
            backend.print_palette_header("p", 1)
            backend.print_end_header()
            backend.close_all()

            self.assertIn("uint16_t p_pal[1]", (Path(tmp) / "g.c").read_text(encoding="utf-8"))
            self.assertFalse((Path(tmp) / "missing").exists())
            self.assertEqual(backend.header.state, StreamState.FAILED)


class DialectRegistryTests(unittest.TestCase):
    def test_known_dialects(self):
        self.assertEqual(list_dialects(), ["asm", "c"])
        self.assertEqual(get_backend(None).dialect, "c")
        self.assertEqual(get_backend("asm", init_guard=True).init_guard, True)

    def test_unknown_dialect(self):
        with self.assertRaises(ValueError):
            get_backend("basic")


if __name__ == "__main__":
    unittest.main()
