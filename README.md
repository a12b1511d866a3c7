# dmgemu

An emulator for the original monochrome handheld game console. It runs
cartridge ROM images in a window, with a CPU core for the SM83 instruction
set, a scanline picture processor with background, window and object
layers, the divider and programmable timer, interrupts, joypad input and
MBC0, MBC1, MBC2 and MBC3 cartridges.

## Installation

```
pip install .
```

This installs `pygame`, which is used for the window and keyboard input.

## Usage

```
dmgemu path/to/game.gb
```

On start the emulator prints the cartridge title, the number of ROM and RAM
banks and the memory bank controller type. It then opens a resizable window
(three times the 160x144 screen size) and runs at 60 frames per second.

Without an argument the command prints a usage line and exits with status 1.
A file that cannot be read, a ROM too small to hold a cartridge header, an
unsupported ROM or RAM size code or an unsupported controller type is
reported on standard error, also with status 1.

### Controls

| Key         | Button  |
|-------------|---------|
| Arrow keys  | D-pad   |
| Z           | A       |
| X           | B       |
| N           | Select  |
| M           | Start   |

Close the window to quit.

### Save files

Cartridges with external RAM, and MBC2 cartridges with their built-in
512-entry RAM, have that RAM loaded from a file named after the cartridge
title in the current directory, if one exists, and written back to it when
the window is closed.

## Using it as a library

```python
from dmgemu.dmg import DMG

with DMG("game.gb") as emu:
    emu.start()
```

`DMG` loads the cartridge, picks the bank controller from `dmgemu.mbc`
(`MBC0`, `MBC1`, `MBC2`, `MBC3`) and opens the window through
`dmgemu.renderer.Renderer`; leaving the `with` block closes it.

The core can also be driven without a window. `dmgemu.cpu.CPU` takes a
`dmgemu.memory.Memory` (or one of the controllers) and wires it to
`Registers`, `Interrupts`, `Timer`, `Joypad`, `PPU` and `Audio`.
`CPU.step()` executes one instruction, or idles one cycle while halted;
`PPU.frame_buffer` holds the current picture as 160x144 RGBA bytes.

```python
from dmgemu.cpu import CPU
from dmgemu.mbc import MBC0

cpu = CPU(MBC0(rom_bytes))
while not cpu.ppu.frame_ready:
    if not cpu.interrupts.check_interrupts():
        cpu.step()
    cpu.timer.update()
    cpu.ppu.step()
```

## Limitations

- There is no sound: the sound registers and wave RAM are stored and read
  back, but nothing is played.
- The serial port is not emulated.
- The MBC3 real-time clock registers can be read and written, but the clock
  does not run and latching captures nothing.
- STOP does nothing.
- There is no boot ROM; execution starts at 0x100 with the registers set to
  their values after boot.

## Tests

```
pip install .[test]
pytest
```