#!/usr/bin/env python3
"""
Trace analysis example for the CHIP-8 virtual machine.

This example drives a machine frame by frame the way an interactive host
would, records every executed instruction, and then summarizes which
registers the program touched and how often the sound timer fired.

Usage:
    python trace_analysis.py --rom <path_to_rom>
"""
import argparse
import logging
import sys
import os

# Add parent directory to path to allow running from examples directory
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from chip8_vm.systems.system_factory import SystemFactory
from chip8_vm.systems.chip8.errors import Chip8Error
from chip8_vm.analysis.state_recorder import StateRecorder
from chip8_vm.common.visualizer import FrameRenderer

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("TraceAnalysisExample")

def main():
    """Run the trace analysis example."""
    parser = argparse.ArgumentParser(description="Trace analysis example for the CHIP-8 virtual machine")
    parser.add_argument('--rom', type=str, help='Path to ROM file')
    parser.add_argument('--frames', type=int, default=60, help='Number of frames to run')
    parser.add_argument('--seed', type=int, default=0, help='Seed for the random number instruction')

    args = parser.parse_args()

    if not args.rom:
        logger.error("No ROM file specified. Use --rom to specify a ROM file.")
        return 1

    system = SystemFactory.create_system("chip8", seed=args.seed)

    logger.info(f"Loading ROM: {args.rom}")
    try:
        system.load_rom(args.rom)
    except (OSError, Chip8Error) as e:
        logger.error(f"Error loading ROM: {e}")
        return 1

    tones = []
    system.events.add_tone_listener(lambda: tones.append(system.frame_count), lambda: None)

    recorder = StateRecorder()
    system.register_state_recorder(recorder)

    logger.info(f"Running {args.frames} frames")
    try:
        for _ in range(args.frames):
            system.run_frame()
    except Chip8Error as e:
        logger.error(f"Program stopped: {e}")

    stats = recorder.get_statistics()
    print("\nExecution:")
    print(f"Instructions recorded: {stats['total_records']}")
    print(f"Tones started: {len(tones)} (frames {tones[:10]})")

    print("\nRegister Activity:")
    for name in stats["unique_registers"]:
        changes = recorder.find_register_value_changes(name)
        if changes and name not in ("PC", "SP"):
            values = recorder.get_register_history(name)["values"]
            print(f"{name}: {len(changes)} changes, range {min(values)}..{max(values)}")

    print()
    print(FrameRenderer().render_system(system))

    logger.info("Trace analysis complete")
    return 0

if __name__ == "__main__":
    sys.exit(main())
