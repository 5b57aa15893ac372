"""eZ80 assembly dialect (fasmg syntax): labelled ``db``/``dw``/``dl`` data plus an ``.inc`` of externs."""

from __future__ import annotations

from .backend import EmissionBackend, OpenArray
from .color import pack_colors
from .models import ArrayKind, Palette


class AsmFormat(EmissionBackend):
    dialect = "asm"
    header_suffix = ".inc"
    source_suffix = ".asm"

    def _label(self, symbol: str) -> str:
        return f"\tpublic\t_{symbol}\n_{symbol}:\n"

    def _directive(self, array: OpenArray) -> str:
        return "\tdl\t" if array.kind is ArrayKind.APPVAR else "\tdb\t"

    def _append(self, array: OpenArray, text: str) -> None:
        if array.line_fresh:
            self.source.write(self._directive(array) + text)
            array.line_fresh = False
        else:
            self.source.write("," + text)

    def print_source_header(self, header_file_name: str | None) -> None:
        out = self._begin(self.source, "print_source_header")
        out.write(f"; {self.banner}\n")
        if header_file_name:
            out.write(f"; declarations: {header_file_name}\n")
        out.write("\tsection\t.rodata\n\n")

    def print_image_source_header(self, group_header_file_name: str) -> None:
        out = self._begin(self.source, "print_image_source_header")
        out.write(f"; {self.banner}\n")
        out.write(f"; declarations: {group_header_file_name}\n")
        out.write("\tsection\t.rodata\n\n")

    def print_header_header(self, group_name: str) -> None:
        out = self._begin(self.header, "print_header_header")
        out.write(f"; {self.banner}\n")
        out.write("; This file contains all the graphics for easier inclusion in a project\n")
        out.write(f"if ~ defined __{group_name}_inc__\n__{group_name}_inc__ := 1\n\n")

    def print_end_header(self) -> None:
        out = self._finalize_header("print_end_header")
        out.write("\nend if\n")
        out.flush()

    def print_palette(self, name: str, palette: Palette) -> None:
        out = self._defn("print_palette")
        symbol = f"{name}_pal"
        out.write(self._label(symbol))
        for index, (color, packed) in enumerate(zip(palette.colors, pack_colors(palette.colors))):
            out.write(f"\tdw\t${int(packed):04X}\t; {index:02d} :: rgba({color.r},{color.g},{color.b},{color.a})\n")
        out.write("\n")
        self.stats.defined.add(symbol)
        self.stats.arrays += 1
        out.flush()

    def print_transparent_index(self, name: str, index: int) -> None:
        out = self._decl("print_transparent_index")
        out.write(f"{name}_transparent_color_index := {index}\n\n")

    def print_palette_header(self, name: str, length: int) -> None:
        out = self._decl("print_palette_header")
        out.write(f"sizeof_{name}_pal := {length * 2}\n")
        out.write(f"\textern\t_{name}_pal\n")
        self.stats.declared.add(f"{name}_pal")

    def print_image(self, name: str, size: int, width: int, height: int, bpp: int = 8) -> None:
        symbol = f"{name}_data"
        out = self._open_array("print_image", symbol, ArrayKind.IMAGE, size, framing=2)
        out.write(f"; {bpp} bpp image, {size} bytes\n{self._label(symbol)}\tdb\t{width},{height}\t; width,height\n")

    def print_compressed_image(self, name: str, size: int, bpp: int = 8) -> None:
        symbol = f"{name}_compressed"
        out = self._open_array("print_compressed_image", symbol, ArrayKind.IMAGE, size)
        out.write(f"; {bpp} bpp image, {size} bytes\n{self._label(symbol)}")

    def print_tile(self, name: str, tile_index: int, size: int, width: int, height: int) -> None:
        self._expect_tile("print_tile", name, tile_index)
        symbol = f"{name}_tile_{tile_index}_data"
        out = self._open_array("print_tile", symbol, ArrayKind.TILE, size, framing=2)
        out.write(f"{self._label(symbol)}\tdb\t{width},{height}\t; tile_width,tile_height\n")

    def print_compressed_tile(self, name: str, tile_index: int, size: int) -> None:
        self._expect_tile("print_compressed_tile", name, tile_index)
        symbol = f"{name}_tile_{tile_index}_compressed"
        out = self._open_array("print_compressed_tile", symbol, ArrayKind.TILE, size)
        out.write(self._label(symbol))

    def print_tile_ptrs(self, name: str, num_tiles: int, compressed: bool) -> None:
        out = self._defn("print_tile_ptrs")
        self._check_tile_count("print_tile_ptrs", name, num_tiles)
        suffix = "compressed" if compressed else "data"
        out.write(self._label(f"{name}_tiles_{suffix}"))
        for i in range(num_tiles):
            out.write(f"\tdl\t_{name}_tile_{i}_{suffix}\n")
        out.write("\n")
        self.stats.defined.add(f"{name}_tiles_{suffix}")
        self.stats.arrays += 1
        out.flush()

    def print_byte(self, value: int) -> None:
        array = self._element("print_byte")
        if not 0 <= value <= 0xFF:
            raise ValueError(f"Byte value out of range: {value}")
        self._append(array, f"${value:02X}")
        array.count += 1
        self.stats.bytes_emitted += 1

    def print_next_array_line(self, at_end: bool) -> None:
        array = self._require_array("print_next_array_line")
        if not array.line_fresh:
            self.source.write("\n")
            array.line_fresh = True
        if at_end:
            self.source.write("\n")
            self._close_array()

    def print_image_header(self, name: str, size: int, compressed: bool) -> None:
        self._image_header("print_image_header", name, size, compressed, self.image_type)

    def print_transparent_image_header(self, name: str, size: int, compressed: bool) -> None:
        self._image_header("print_transparent_image_header", name, size, compressed, self.timage_type)

    def _image_header(self, operation: str, name: str, size: int, compressed: bool, type_name: str) -> None:
        out = self._decl(operation)
        symbol = f"{name}_compressed" if compressed else f"{name}_data"
        out.write(f"sizeof_{symbol} := {size}\n")
        out.write(f"\textern\t_{symbol}\n")
        if not compressed:
            out.write(f"{name} equ _{symbol}\t; {type_name}\n")
        self.stats.declared.add(symbol)

    def print_tiles_header(self, name: str, num_tiles: int, compressed: bool) -> None:
        out = self._decl("print_tiles_header")
        suffix = "compressed" if compressed else "data"
        for i in range(num_tiles):
            out.write(f"\textern\t_{name}_tile_{i}_{suffix}\n")
            if not compressed:
                out.write(f"{name}_tile_{i} equ _{name}_tile_{i}_data\t; {self.image_type}\n")
            self.stats.declared.add(f"{name}_tile_{i}_{suffix}")

    def print_tiles_ptrs_header(self, name: str, num_tiles: int, compressed: bool) -> None:
        out = self._decl("print_tiles_ptrs_header")
        suffix = "compressed" if compressed else "data"
        out.write(f"{name}_tiles_num := {num_tiles}\n")
        out.write(f"\textern\t_{name}_tiles_{suffix}\n")
        if not compressed:
            out.write(f"{name}_tiles equ _{name}_tiles_data\t; {self.image_type}**\n")
        self.stats.declared.add(f"{name}_tiles_{suffix}")

    def print_appvar_array(self, name: str, member_count: int) -> None:
        header = self._decl("print_appvar_array")
        out = self._open_appvar("print_appvar_array", name, member_count)
        out.write(f"\tsection\t.data\n{self._label(name)}")
        header.write(f"{name}_num := {member_count}\n\n")
        header.write(f"\textern\t_{name}\n")
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
        array = self._appvar_entry("print_appvar_image", offset)
        self._append(array, str(offset))
        alias = f"{image_name}_compressed" if compressed else image_name
        type_name = self.timage_type if transparent_style else self.image_type
        header.write(f"{alias} equ (_{name}+{index * 3})\t; {type_name} stored at {name}[{index}]\n")

    def print_appvar_palette(self, offset: int) -> None:
        array = self._appvar_entry("print_appvar_palette", offset)
        self._append(array, str(offset))

    def print_appvar_palette_header(self, palette_name: str, name: str, index: int, length: int) -> None:
        out = self._decl("print_appvar_palette_header")
        out.write(f"sizeof_{palette_name}_pal := {length * 2}\n")
        out.write(f"{palette_name}_pal equ (_{name}+{index * 3})\t; uint16_t* stored at {name}[{index}]\n")

    def print_appvar_load_function_header(self) -> None:
        out = self._defn("print_appvar_load_function_header")
        out.write(f"; loader routines from {self.loader_include}\n")
        for routine in ("ti_CloseAll", "ti_Open", "ti_GetDataPtr"):
            out.write(f"\textern\t_{routine}\n")
        out.write("\n")

    def print_appvar_load_function(self, name: str) -> None:
        header = self._decl("print_appvar_load_function")
        out = self._defn("print_appvar_load_function")
        base = self._appvar_bases.get(name, 0)
        count = self._appvar_counts.get(name, 0)

        lines = ["\n\tsection\t.text\n", self._label(f"{name}_init")]
        if self.init_guard:
            lines += [
                f"\tld\ta,(__{name}_relocated)\n",
                "\tor\ta,a\n",
                "\tjr\tz,.relocate\n",
                "\tld\ta,1\n",
                "\tret\n",
                ".relocate:\n",
            ]
        lines += [
            "\tpush\tix\n",
            "\tcall\t_ti_CloseAll\n",
            f"\tld\thl,__{name}_mode\n",
            "\tpush\thl\n",
            f"\tld\thl,__{name}_name\n",
            "\tpush\thl\n",
            "\tcall\t_ti_Open\n",
            "\tpop\thl\n",
            "\tpop\thl\n",
        ]
        if self.init_guard:
            lines += ["\tor\ta,a\n", "\tjr\tz,.fail\n"]
        lines += [
            "\tld\tl,a\n",
            "\tpush\thl\n",
            "\tcall\t_ti_GetDataPtr\n",
        ]
        if self.init_guard:
            lines += [
                "\tpop\tbc\n",
                "\tld\tde,0\n",
                "\tor\ta,a\n",
                "\tsbc\thl,de\n",
                "\tjr\tz,.fail\n",
            ]
        lines += [
            f"\tld\tde,{base}\t; {name}[0] as built\n",
            "\tor\ta,a\n",
            "\tsbc\thl,de\n",
            "\tex\tde,hl\n",
            f"\tld\tix,_{name}\n",
            f"\tld\tbc,{count}\n",
            ".loop:\n",
            "\tld\thl,(ix+0)\n",
            "\tadd\thl,de\n",
            "\tld\t(ix+0),hl\n",
            "\tlea\tix,ix+3\n",
            "\tdec\tbc\n",
            "\tld\ta,c\n",
            "\tor\ta,b\n",
            "\tjr\tnz,.loop\n",
            "\tcall\t_ti_CloseAll\n",
        ]
        if self.init_guard:
            lines += [
                "\tld\ta,1\n",
                f"\tld\t(__{name}_relocated),a\n",
                "\tpop\tix\n",
                "\tret\n",
                ".fail:\n",
                "\tcall\t_ti_CloseAll\n",
                "\txor\ta,a\n",
                "\tpop\tix\n",
                "\tret\n",
            ]
        else:
            lines += [
                "\tpop\tbc\n",
                "\tld\ta,c\n",
                "\tor\ta,a\n",
                "\tjr\tz,.done\n",
                "\tld\ta,1\n",
                ".done:\n",
                "\tpop\tix\n",
                "\tret\n",
            ]
        lines += [
            "\n\tsection\t.rodata\n",
            f"__{name}_name:\n",
            f'\tdb\t"{name}",0\n',
            f"__{name}_mode:\n",
            '\tdb\t"r",0\n',
        ]
        if self.init_guard:
            lines += ["\n\tsection\t.data\n", f"__{name}_relocated:\n", "\tdb\t0\n"]
        out.write("".join(lines))
        out.flush()
        header.write(f"\n\textern\t_{name}_init\n")
        self.stats.defined.add(f"{name}_init")
        self.stats.declared.add(f"{name}_init")
