"""C source dialect: ``uint8_t``/``uint16_t`` array definitions plus extern header."""

from __future__ import annotations

from .backend import EmissionBackend
from .color import pack_colors
from .models import ArrayKind, Palette


class CFormat(EmissionBackend):
    dialect = "c"
    header_suffix = ".h"
    source_suffix = ".c"

    def print_source_header(self, header_file_name: str | None) -> None:
        out = self._begin(self.source, "print_source_header")
        out.write(f"// {self.banner}\n")
        out.write("#include <stdint.h>\n")
        if header_file_name:
            out.write(f'#include "{header_file_name}"\n\n')

    def print_image_source_header(self, group_header_file_name: str) -> None:
        out = self._begin(self.source, "print_image_source_header")
        out.write(f"// {self.banner}\n")
        out.write("#include <stdint.h>\n")
        out.write(f'#include "{group_header_file_name}"\n\n')

    def print_header_header(self, group_name: str) -> None:
        out = self._begin(self.header, "print_header_header")
        out.write(f"// {self.banner}\n")
        out.write("// This file contains all the graphics sources for easier inclusion in a project\n")
        out.write(f"#ifndef __{group_name}__\n#define __{group_name}__\n")
        out.write("#include <stdint.h>\n\n")

    def print_end_header(self) -> None:
        out = self._finalize_header("print_end_header")
        out.write("\n#endif\n")
        out.flush()

    def print_palette(self, name: str, palette: Palette) -> None:
        out = self._defn("print_palette")
        symbol = f"{name}_pal"
        out.write(f"uint16_t {symbol}[{len(palette)}] = {{\n")
        for index, (color, packed) in enumerate(zip(palette.colors, pack_colors(palette.colors))):
            out.write(f" 0x{int(packed):04X},  // {index:02d} :: rgba({color.r},{color.g},{color.b},{color.a})\n")
        out.write("};\n")
        self.stats.defined.add(symbol)
        self.stats.arrays += 1
        out.flush()

    def print_transparent_index(self, name: str, index: int) -> None:
        out = self._decl("print_transparent_index")
        out.write(f"#define {name}_transparent_color_index {index}\n\n")

    def print_palette_header(self, name: str, length: int) -> None:
        out = self._decl("print_palette_header")
        out.write(f"#define sizeof_{name}_pal {length * 2}\n")
        out.write(f"extern uint16_t {name}_pal[{length}];\n")
        self.stats.declared.add(f"{name}_pal")

    def print_image(self, name: str, size: int, width: int, height: int, bpp: int = 8) -> None:
        out = self._open_array("print_image", f"{name}_data", ArrayKind.IMAGE, size, framing=2)
        out.write(f"// {bpp} bpp image\nuint8_t {name}_data[{size}] = {{\n {width},{height},  // width,height\n ")

    def print_compressed_image(self, name: str, size: int, bpp: int = 8) -> None:
        out = self._open_array("print_compressed_image", f"{name}_compressed", ArrayKind.IMAGE, size)
        out.write(f"// {bpp} bpp image\nuint8_t {name}_compressed[{size}] = {{\n ")

    def print_tile(self, name: str, tile_index: int, size: int, width: int, height: int) -> None:
        self._expect_tile("print_tile", name, tile_index)
        symbol = f"{name}_tile_{tile_index}_data"
        out = self._open_array("print_tile", symbol, ArrayKind.TILE, size, framing=2)
        out.write(f"uint8_t {symbol}[{size}] = {{\n {width},\t// tile_width\n {height},\t// tile_height\n ")

    def print_compressed_tile(self, name: str, tile_index: int, size: int) -> None:
        self._expect_tile("print_compressed_tile", name, tile_index)
        symbol = f"{name}_tile_{tile_index}_compressed"
        out = self._open_array("print_compressed_tile", symbol, ArrayKind.TILE, size)
        out.write(f"uint8_t {symbol}[{size}] = {{\n ")

    def print_tile_ptrs(self, name: str, num_tiles: int, compressed: bool) -> None:
        out = self._defn("print_tile_ptrs")
        self._check_tile_count("print_tile_ptrs", name, num_tiles)
        suffix = "compressed" if compressed else "data"
        out.write(f"uint8_t *{name}_tiles_{suffix}[{num_tiles}] = {{\n")
        for i in range(num_tiles):
            out.write(f" {name}_tile_{i}_{suffix},\n")
        out.write("};\n")
        self.stats.defined.add(f"{name}_tiles_{suffix}")
        self.stats.arrays += 1
        out.flush()

    def print_byte(self, value: int) -> None:
        array = self._element("print_byte")
        if not 0 <= value <= 0xFF:
            raise ValueError(f"Byte value out of range: {value}")
        self.source.write(f"0x{value:02X},")
        array.count += 1
        self.stats.bytes_emitted += 1

    def print_next_array_line(self, at_end: bool) -> None:
        self._require_array("print_next_array_line")
        if at_end:
            self.source.write("\n};\n")
            self._close_array()
        else:
            self.source.write("\n ")

    def print_image_header(self, name: str, size: int, compressed: bool) -> None:
        self._image_header("print_image_header", name, size, compressed, self.image_type)

    def print_transparent_image_header(self, name: str, size: int, compressed: bool) -> None:
        self._image_header("print_transparent_image_header", name, size, compressed, self.timage_type)

    def _image_header(self, operation: str, name: str, size: int, compressed: bool, type_name: str) -> None:
        out = self._decl(operation)
        if compressed:
            out.write(f"extern uint8_t {name}_compressed[{size}];\n")
            self.stats.declared.add(f"{name}_compressed")
        else:
            out.write(f"extern uint8_t {name}_data[{size}];\n")
            out.write(f"#define {name} (({type_name}*){name}_data)\n")
            self.stats.declared.add(f"{name}_data")

    def print_tiles_header(self, name: str, num_tiles: int, compressed: bool) -> None:
        out = self._decl("print_tiles_header")
        for i in range(num_tiles):
            if compressed:
                out.write(f"extern uint8_t {name}_tile_{i}_compressed[];\n")
                self.stats.declared.add(f"{name}_tile_{i}_compressed")
            else:
                out.write(f"extern uint8_t {name}_tile_{i}_data[];\n")
                out.write(f"#define {name}_tile_{i} (({self.image_type}*){name}_tile_{i}_data)\n")
                self.stats.declared.add(f"{name}_tile_{i}_data")

    def print_tiles_ptrs_header(self, name: str, num_tiles: int, compressed: bool) -> None:
        out = self._decl("print_tiles_ptrs_header")
        if compressed:
            out.write(f"extern uint8_t *{name}_tiles_compressed[{num_tiles}];\n")
            self.stats.declared.add(f"{name}_tiles_compressed")
        else:
            out.write(f"extern uint8_t *{name}_tiles_data[{num_tiles}];\n")
            out.write(f"#define {name}_tiles (({self.image_type}**){name}_tiles_data)\n")
            self.stats.declared.add(f"{name}_tiles_data")

    def print_appvar_array(self, name: str, member_count: int) -> None:
        header = self._decl("print_appvar_array")
        out = self._open_appvar("print_appvar_array", name, member_count)
        out.write(f"uint8_t *{name}[{member_count}] = {{\n ")
        header.write("#include <stdbool.h>\n\n")
        header.write(f"#define {name}_num {member_count}\n\n")
        header.write(f"extern uint8_t *{name}[{member_count}];\n")
        self.stats.declared.add(name)

    def print_appvar_image(
        self,
        name: str,
        offset: int,
        image_name: str,
        index: int,
        compressed: bool,
        transparent_style: bool,
    ) -> None:
        header = self._decl("print_appvar_image")
        self._appvar_entry("print_appvar_image", offset)
        self.source.write(f"(uint8_t*){offset},")
        type_name = self.timage_type if transparent_style else self.image_type
        alias = f"{image_name}_compressed" if compressed else image_name
        header.write(f"#define {alias} (({type_name}*){name}[{index}])\n")

    def print_appvar_palette(self, offset: int) -> None:
        self._appvar_entry("print_appvar_palette", offset)
        self.source.write(f"(uint8_t*){offset},")

    def print_appvar_palette_header(self, palette_name: str, name: str, index: int, length: int) -> None:
        out = self._decl("print_appvar_palette_header")
        out.write(f"#define sizeof_{palette_name}_pal {length * 2}\n")
        out.write(f"#define {palette_name}_pal ((uint16_t*){name}[{index}])\n")

    def print_appvar_load_function_header(self) -> None:
        out = self._defn("print_appvar_load_function_header")
        out.write(f"#include <{self.loader_include}>\n")

    def print_appvar_load_function(self, name: str) -> None:
        header = self._decl("print_appvar_load_function")
        out = self._defn("print_appvar_load_function")
        base = self._appvar_bases.get(name, 0)
        lines: list[str] = []
        if self.init_guard:
            lines.append(f"\nstatic bool {name}_relocated = false;\n")
        lines += [
            f"\nbool {name}_init(void) {{\n",
            "    unsigned int i;\n",
            "    unsigned int delta;\n",
            "    ti_var_t appvar;\n",
            "    void *data;\n\n",
        ]
        if self.init_guard:
            lines += [f"    if ({name}_relocated) {{\n", "        return true;\n", "    }\n\n"]
        lines += ["    ti_CloseAll();\n\n", f'    appvar = ti_Open("{name}", "r");\n']
        if self.init_guard:
            lines += ["    if (!appvar) {\n", "        return false;\n", "    }\n"]
        lines.append("    data = ti_GetDataPtr(appvar);\n")
        if self.init_guard:
            lines += ["    if (!data) {\n", "        ti_CloseAll();\n", "        return false;\n", "    }\n"]
        lines += [
            f"    delta = (unsigned int)data - {base};  // {name}[0] as built\n",
            f"    for (i = 0; i < {name}_num; i++) {{\n",
            f"        {name}[i] += delta;\n",
            "    }\n\n",
            "    ti_CloseAll();\n",
        ]
        if self.init_guard:
            lines += [f"    {name}_relocated = true;\n", "    return true;\n"]
        else:
            lines.append("    return (bool)appvar;\n")
        lines.append("}\n")
        out.write("".join(lines))
        out.flush()
        header.write(f"\nbool {name}_init(void);\n")
        self.stats.defined.add(f"{name}_init")
        self.stats.declared.add(f"{name}_init")
