import re
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "formats"))

from gfxconv_formats.c_format import CFormat
from gfxconv_formats.errors import OrderingViolation
from gfxconv_formats.models import Color, Palette


def array_values(text, symbol):
    start = text.index(f" {symbol}[")
    body = text[text.index("{", start) + 1 : text.index("};", start)]
    values = []
    for line in body.splitlines():
        for item in line.split("//")[0].split(","):
            item = item.strip()
            if item:
                values.append(int(item, 0))
    return values


class CFormatTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.header_path = self.dir / "gfx.h"
        self.source_path = self.dir / "gfx.c"
        self.backend = self.make_backend()
        self.backend.open_output(self.header_path, header=True)
        self.backend.open_output(self.source_path, header=False)
        self.backend.print_header_header("gfx")
        self.backend.print_source_header("gfx.h")

    def tearDown(self):
        self.backend.close_all()
        self._tmp.cleanup()

    def make_backend(self):
        return CFormat()

    def finish(self):
        self.backend.print_end_header()
        self.backend.close_all()
        return self.header_path.read_text(encoding="utf-8"), self.source_path.read_text(encoding="utf-8")

    def emit(self, data, per_line=16):
        for i, value in enumerate(data):
            self.backend.print_byte(value)
            if (i + 1) % per_line == 0 and i + 1 < len(data):
                self.backend.print_next_array_line(False)
        self.backend.print_next_array_line(True)


class CPaletteTests(CFormatTestCase):
    def test_two_entry_palette_with_transparency(self):
        pal = Palette("gfx", (Color(255, 0, 0, 255), Color(0, 255, 0, 0)), transparent_index=1)
        self.backend.print_palette("gfx", pal)
        self.backend.print_palette_header("gfx", len(pal))
        self.backend.print_transparent_index("gfx", 1)
        header, source = self.finish()

        self.assertIn("uint16_t gfx_pal[2] = {", source)
        self.assertEqual(array_values(source, "gfx_pal"), [0xF801, 0x07C0])
        entries = [line for line in source.splitlines() if line.startswith(" 0x")]
        self.assertEqual(len(entries), 2)
        self.assertIn("// 00 :: rgba(255,0,0,255)", entries[0])
        self.assertIn("// 01 :: rgba(0,255,0,0)", entries[1])
        self.assertIn("#define gfx_transparent_color_index 1", header)
        self.assertIn("#define sizeof_gfx_pal 4", header)
        self.assertIn("extern uint16_t gfx_pal[2];", header)

    def test_palette_lines_in_index_order(self):
        colors = tuple(Color(i, i, i, 255) for i in range(0, 256, 8))
        self.backend.print_palette("grey", Palette("grey", colors))
        _, source = self.finish()
        indices = [int(m) for m in re.findall(r"// (\d+) ::", source)]
        self.assertEqual(indices, list(range(len(colors))))


class CImageTests(CFormatTestCase):
    def test_8x8_image_has_66_elements(self):
        pixels = bytes(range(64))
        self.backend.print_image("sprite", 66, 8, 8, 8)
        self.emit(pixels)
        self.backend.print_image_header("sprite", 66, False)
        header, source = self.finish()

        values = array_values(source, "sprite_data")
        self.assertEqual(len(values), 66)
        self.assertEqual(values[:2], [8, 8])
        self.assertEqual(bytes(values[2:]), pixels)
        self.assertIn("// 8 bpp image\nuint8_t sprite_data[66] = {", source)
        self.assertIn("extern uint8_t sprite_data[66];", header)
        self.assertIn("#define sprite ((gfx_image_t*)sprite_data)", header)

    def test_compressed_image_round_trip(self):
        blob = bytes([0x00, 0xFF, 0x10, 0x80, 0x7F] * 7)
        self.backend.print_compressed_image("logo", len(blob), 8)
        self.emit(blob, per_line=8)
        self.backend.print_image_header("logo", len(blob), True)
        header, source = self.finish()

        self.assertEqual(bytes(array_values(source, "logo_compressed")), blob)
        self.assertIn(f"extern uint8_t logo_compressed[{len(blob)}];", header)
        self.assertNotIn("#define logo ", header)

    def test_transparent_image_header_uses_timage(self):
        self.backend.print_image("spr", 3, 1, 1, 8)
        self.emit(b"\x01")
        self.backend.print_transparent_image_header("spr", 3, False)
        header, _ = self.finish()
        self.assertIn("#define spr ((gfx_timage_t*)spr_data)", header)

    def test_size_mismatch_is_logged(self):
        with self.assertLogs("gfxconv.backend", level="WARNING") as logs:
            self.backend.print_image("short", 10, 2, 2, 8)
            self.emit(b"\x00\x01")
        self.assertIn("declared 10 elements but received 4", logs.output[0])

    def test_byte_range_checked(self):
        self.backend.print_compressed_image("x", 1)
        with self.assertRaises(ValueError):
            self.backend.print_byte(256)


class CTileTests(CFormatTestCase):
    def test_tiles_and_pointer_table(self):
        for index in range(3):
            self.backend.print_tile("map", index, 6, 2, 2)
            self.emit(bytes([index] * 4))
        self.backend.print_tile_ptrs("map", 3, False)
        self.backend.print_tiles_header("map", 3, False)
        self.backend.print_tiles_ptrs_header("map", 3, False)
        header, source = self.finish()

        self.assertEqual(array_values(source, "map_tile_2_data"), [2, 2, 2, 2, 2, 2])
        self.assertIn(" map_tile_0_data,\n map_tile_1_data,\n map_tile_2_data,\n};", source)
        self.assertIn("#define map_tile_1 ((gfx_image_t*)map_tile_1_data)", header)
        self.assertIn("#define map_tiles ((gfx_image_t**)map_tiles_data)", header)
        self.assertEqual(self.backend.stats.unpaired(), [])

    def test_tiles_must_start_at_zero(self):
        with self.assertRaises(OrderingViolation):
            self.backend.print_tile("map", 1, 6, 2, 2)

    def test_tiles_must_be_contiguous(self):
        self.backend.print_compressed_tile("map", 0, 1)
        self.emit(b"\x00")
        with self.assertRaises(OrderingViolation):
            self.backend.print_compressed_tile("map", 2, 1)

    def test_pointer_table_checks_tile_count(self):
        self.backend.print_tile("map", 0, 3, 1, 1)
        self.emit(b"\x00")
        with self.assertRaises(OrderingViolation):
            self.backend.print_tile_ptrs("map", 2, False)


class CAppvarTests(CFormatTestCase):
    def emit_appvar(self):
        self.backend.print_appvar_load_function_header()
        self.backend.print_appvar_array("gfxvar", 3)
        self.backend.print_appvar_palette(0)
        self.backend.print_appvar_palette_header("global", "gfxvar", 0, 2)
        self.backend.print_appvar_image("gfxvar", 4, "ship", 1, False, True)
        self.backend.print_appvar_image("gfxvar", 70, "logo", 2, True, False)
        self.backend.print_next_array_line(True)
        self.backend.print_appvar_load_function("gfxvar")
        return self.finish()

    def test_pointer_table_and_aliases(self):
        header, source = self.emit_appvar()
        self.assertIn("#include <fileioc.h>", source)
        self.assertIn("uint8_t *gfxvar[3] = {\n (uint8_t*)0,(uint8_t*)4,(uint8_t*)70,\n};", source)
        self.assertIn("#define gfxvar_num 3", header)
        self.assertIn("extern uint8_t *gfxvar[3];", header)
        self.assertIn("#define global_pal ((uint16_t*)gfxvar[0])", header)
        self.assertIn("#define ship ((gfx_timage_t*)gfxvar[1])", header)
        self.assertIn("#define logo_compressed ((gfx_image_t*)gfxvar[2])", header)

    def test_load_function(self):
        header, source = self.emit_appvar()
        self.assertIn("\nbool gfxvar_init(void) {\n", source)
        self.assertIn('appvar = ti_Open("gfxvar", "r");', source)
        self.assertIn("delta = (unsigned int)data - 0;", source)
        self.assertIn("gfxvar[i] += delta;", source)
        self.assertIn("return (bool)appvar;", source)
        self.assertNotIn("gfxvar_relocated", source)
        self.assertIn("\nbool gfxvar_init(void);\n", header)
        self.assertTrue(header.endswith("\n#endif\n"))
        self.assertEqual(self.backend.stats.unpaired(), [])

    def test_entries_need_open_table(self):
        with self.assertRaises(OrderingViolation):
            self.backend.print_appvar_palette(0)

    def test_table_rejects_raw_bytes(self):
        self.backend.print_appvar_array("gfxvar", 1)
        with self.assertRaises(OrderingViolation):
            self.backend.print_byte(0)


class CGuardedAppvarTests(CFormatTestCase):
    def make_backend(self):
        return CFormat(init_guard=True)

    def test_guarded_loader_keeps_signature(self):
        self.backend.print_appvar_array("gfxvar", 1)
        self.backend.print_appvar_palette(0)
        self.backend.print_next_array_line(True)
        self.backend.print_appvar_load_function("gfxvar")
        header, source = self.finish()
        self.assertIn("static bool gfxvar_relocated = false;", source)
        self.assertIn("if (gfxvar_relocated) {", source)
        self.assertIn("if (!data) {", source)
        self.assertIn("gfxvar_relocated = true;", source)
        self.assertIn("\nbool gfxvar_init(void);\n", header)


if __name__ == "__main__":
    unittest.main()
