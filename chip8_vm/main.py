"""
Main entry point for the CHIP-8 virtual machine.

This module is a headless host for the interpreter core: it loads a ROM
file, holds down any requested keys, runs a number of frames
(ticks_per_frame instructions plus one timer tick each) and renders the
final framebuffer as text or as a PNG image.
"""

import argparse
import logging
import time
import sys
from typing import List, Optional

from tqdm import tqdm

from chip8_vm.systems.system_factory import SystemFactory
from chip8_vm.systems.chip8.errors import Chip8Error, Chip8Fault
from chip8_vm.common.visualizer import FrameRenderer
from chip8_vm.analysis.state_recorder import StateRecorder
from chip8_vm.utils.config_manager import ConfigManager
from chip8_vm.utils.error_handler import error_handler, ErrorCategory
from chip8_vm.utils.event_manager import EventType
from chip8_vm.system_configs import map_host_key
from chip8_vm.constants import RENDER_MODES

logger = logging.getLogger("Chip8VM")

def parse_key_list(text: str) -> List[int]:
    """
    Parse a list of hex key indices such as '1,a,F' or '1aF'.

    Raises:
        argparse.ArgumentTypeError: A character is not a hex digit
    """
    keys = []
    for ch in text.replace(",", "").replace(" ", ""):
        try:
            keys.append(int(ch, 16))
        except ValueError:
            raise argparse.ArgumentTypeError(f"Invalid key index: {ch!r} (expected 0-F)")
    return keys

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CHIP-8 virtual machine (headless host)")
    parser.add_argument('--rom', type=str, required=True, help='Path to ROM file')
    parser.add_argument('--frames', type=int, default=60, help='Number of frames to run')
    parser.add_argument('--ticks-per-frame', type=int, help='Instructions executed per frame')
    parser.add_argument('--seed', type=int, help='Seed for the random number instruction')
    parser.add_argument('--config', type=str, help='Path to JSON or YAML configuration file')
    parser.add_argument('--keys', type=parse_key_list, default=[],
                       help='Key indices (hex) held down for the whole run, e.g. "5,6"')
    parser.add_argument('--press', type=str, default="",
                       help='Host keys held down for the whole run, mapped through the keymap, e.g. "qw"')
    parser.add_argument('--render', type=str, choices=RENDER_MODES, help='How to render the final frame')
    parser.add_argument('--output', type=str, help='PNG path for --render png')
    parser.add_argument('--trace', type=str, help='Write an execution trace (.json or .csv)')
    parser.add_argument('--disassemble', action='store_true', help='Print a listing of the ROM and exit')
    parser.add_argument('--error-report', type=str,
                       help='Write the errors and warnings reported during the run to a JSON file')
    parser.add_argument('--no-progress', action='store_true', help='Hide the progress bar')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                       help='Logging level')
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments and run the program.

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)

    status = run(args)

    if args.error_report and not error_handler.export_error_report(args.error_report):
        status = 1

    return status

def run(args: argparse.Namespace) -> int:
    """
    Configure a machine from parsed arguments, run it and report the result.

    Returns:
        Process exit status
    """
    config = ConfigManager()
    if args.config and not config.load_config(args.config):
        error_handler.log_error(f"Could not load configuration from {args.config}",
                                category=ErrorCategory.CONFIGURATION)
        return 1

    # Command line options override the configuration file
    overrides = {}
    if args.ticks_per_frame is not None:
        overrides["timing"] = {"ticks_per_frame": args.ticks_per_frame}
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.render is not None:
        overrides.setdefault("render", {})["mode"] = args.render
    if args.output is not None:
        overrides.setdefault("render", {})["output"] = args.output
    if args.log_level is not None:
        overrides["logging"] = {"level": args.log_level}
    if overrides and not config.load_from_dict(overrides):
        error_handler.log_error("Invalid command line options", category=ErrorCategory.CONFIGURATION)
        return 1

    log_level = logging.DEBUG if args.debug else getattr(logging, config.get("logging.level", "INFO"))
    error_handler.set_log_levels(log_level)
    if config.get("logging.file"):
        error_handler.set_log_file(config.get("logging.file"))

    try:
        system = SystemFactory.create_system(config.get("system"), config.get_system_config(),
                                             seed=config.get("seed"))
    except ValueError as e:
        error_handler.log_exception(e, f"Error creating system: {e}", category=ErrorCategory.CONFIGURATION)
        return 1

    system.events.register_logger([EventType.SOUND_START, EventType.SOUND_END, EventType.FAULT],
                                  logging.DEBUG)

    try:
        logger.info(f"Loading ROM: {args.rom}")
        system.load_rom(args.rom)
    except (OSError, Chip8Error) as e:
        error_handler.log_exception(e, f"Error loading ROM: {e}", category=ErrorCategory.INPUT)
        return 1

    if args.disassemble:
        from chip8_vm.systems.chip8.decoder import disassemble
        program = system.memory.read_block(0x200, system.memory.rom_size)
        print("\n".join(disassemble(program)))
        return 0

    held_keys = list(args.keys)
    for name in args.press:
        index = map_host_key(name, config.get("keymap"))
        if index is None:
            error_handler.log_warning(f"Host key {name!r} is not mapped; ignoring",
                                      category=ErrorCategory.INPUT)
        else:
            held_keys.append(index)
    for index in held_keys:
        system.set_key_checked(index, True)

    tones = []
    system.events.register_handler(EventType.SOUND_START, tones.append)

    recorder = None
    if args.trace:
        recorder = StateRecorder()
        system.register_state_recorder(recorder)

    start_time = time.time()
    status = 0

    logger.info(f"Running {args.frames} frames at {system.ticks_per_frame} instructions per frame")
    try:
        for _ in tqdm(range(args.frames), desc="Frames", unit="frame", disable=args.no_progress):
            system.run_frame()
    except Chip8Fault as e:
        error_handler.log_exception(e, f"Interpreter fault: {e}", category=ErrorCategory.EXECUTION,
                                    context=system.get_system_state()["cpu_state"])
        status = 1

    execution_time = time.time() - start_time

    if recorder is not None:
        trace_format = 'csv' if args.trace.lower().endswith('.csv') else 'json'
        recorder.save_history(args.trace, format=trace_format)

    renderer = FrameRenderer(scale=config.get("render.scale"), dark_mode=config.get("render.dark_mode"))
    mode = config.get("render.mode")
    if mode == "ascii":
        print(renderer.to_ascii(system.display()))
    elif mode == "png" and not renderer.save_png(system.display(), config.get("render.output")):
        error_handler.log_error(f"Could not write frame to {config.get('render.output')}",
                                category=ErrorCategory.SYSTEM)
        status = 1

    instructions = system.cycle_count
    print(f"\nROM: {system.rom_name}")
    print(f"Frames run: {system.frame_count} "
          f"({system.frame_count / config.get('timing.timer_hz'):.2f} emulated seconds)")
    print(f"Instructions executed: {instructions}")
    print(f"Keys held: {', '.join(f'{k:X}' for k in held_keys) or 'none'}")
    print(f"Tones played: {len(tones)}")
    print(f"Execution time: {execution_time:.2f} seconds")
    if execution_time > 0:
        print(f"Performance: {instructions / execution_time:.0f} instructions/second")

    return status

if __name__ == "__main__":
    sys.exit(main())
