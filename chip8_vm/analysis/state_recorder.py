"""
State recording for execution traces.

The recorder keeps a bounded history of per-instruction snapshots
(instruction count, opcode, mnemonic and registers) and can write it out
as JSON or CSV for offline inspection. Traces are diagnostic output only;
they are never fed back into a machine.
"""

import logging
import json
import os
import time
from typing import Dict, List, Optional, Any
from collections import deque

logger = logging.getLogger("Chip8VM.StateRecorder")

class StateRecorder:
    """
    Records and queries machine state snapshots during emulation.
    """

    def __init__(self, max_history: int = 100000,
                record_filter: Optional[List[str]] = None):
        """
        Initialize the state recorder.

        Args:
            max_history: Maximum number of states to keep in memory
            record_filter: List of register names to include (None for all)
        """
        self.max_history = max_history
        self.record_filter = record_filter

        # State storage (circular buffer)
        self.state_history = deque(maxlen=max_history)

        self.stats = {
            "total_records": 0,
            "start_time": time.time(),
            "start_cycle": None,
            "current_cycle": None,
            "unique_registers": set(),
        }

        logger.info(f"Initialized state recorder with max history {max_history}")

    def record_state(self, state: Dict[str, Any]) -> None:
        """
        Record a system state snapshot.

        Args:
            state: State dictionary with 'cycle' and 'registers' entries
        """
        if self.record_filter is not None and "registers" in state:
            state = state.copy()
            state["registers"] = {
                name: value for name, value in state["registers"].items()
                if name in self.record_filter
            }

        self.stats["total_records"] += 1

        if "cycle" in state:
            if self.stats["start_cycle"] is None:
                self.stats["start_cycle"] = state["cycle"]
            self.stats["current_cycle"] = state["cycle"]

        if "registers" in state:
            self.stats["unique_registers"].update(state["registers"].keys())

        self.state_history.append(state)

    def get_state_history(self, start_idx: Optional[int] = None,
                       end_idx: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get a slice of the state history.

        Args:
            start_idx: Starting index (None for beginning)
            end_idx: Ending index (None for end)

        Returns:
            List of state snapshots
        """
        return list(self.state_history)[start_idx:end_idx]

    def get_state_by_cycle(self, cycle: int) -> Optional[Dict[str, Any]]:
        """
        Get the snapshot recorded at a given instruction count.

        Falls back to the nearest recorded cycle when there is no exact match.

        Args:
            cycle: Instruction count to look up

        Returns:
            State snapshot if any state is recorded, None otherwise
        """
        best = None
        for state in self.state_history:
            if "cycle" not in state:
                continue
            if state["cycle"] == cycle:
                return state
            if best is None or abs(state["cycle"] - cycle) < abs(best["cycle"] - cycle):
                best = state

        if best is not None:
            logger.info(f"Exact cycle {cycle} not found, returning nearest cycle {best['cycle']}")
        return best

    def get_register_history(self, register_name: str) -> Dict[str, List[Any]]:
        """
        Get history for a specific register.

        Args:
            register_name: Name of register to retrieve

        Returns:
            Dictionary with cycle numbers and register values
        """
        cycles = []
        values = []

        for state in self.state_history:
            if "registers" in state and register_name in state["registers"]:
                cycles.append(state.get("cycle", len(cycles)))
                values.append(state["registers"][register_name])

        return {
            "cycles": cycles,
            "values": values
        }

    def find_register_value_changes(self, register_name: str,
                                 start_cycle: Optional[int] = None,
                                 end_cycle: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Find all instances where a register changes value.

        Args:
            register_name: Register name to track
            start_cycle: Starting cycle (None for beginning)
            end_cycle: Ending cycle (None for end)

        Returns:
            List of change events with cycle, instruction and value information
        """
        changes = []
        last_value = None

        for state in self.state_history:
            if "registers" not in state or register_name not in state["registers"]:
                continue

            current_value = state["registers"][register_name]
            current_cycle = state.get("cycle")

            if start_cycle is not None and current_cycle is not None and current_cycle < start_cycle:
                last_value = current_value
                continue

            if end_cycle is not None and current_cycle is not None and current_cycle > end_cycle:
                break

            if last_value is not None and current_value != last_value:
                changes.append({
                    "cycle": current_cycle,
                    "instruction": state.get("instruction"),
                    "old_value": last_value,
                    "new_value": current_value
                })

            last_value = current_value

        return changes

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get recorder statistics.

        Returns:
            Dictionary with statistics
        """
        elapsed_time = time.time() - self.stats["start_time"]

        if self.stats["start_cycle"] is not None and self.stats["current_cycle"] is not None:
            total_cycles = self.stats["current_cycle"] - self.stats["start_cycle"]
        else:
            total_cycles = 0

        return {
            "total_records": self.stats["total_records"],
            "elapsed_time": elapsed_time,
            "total_cycles": total_cycles,
            "cycles_per_second": total_cycles / elapsed_time if elapsed_time > 0 else 0,
            "current_history_size": len(self.state_history),
            "max_history_size": self.max_history,
            "unique_registers": sorted(self.stats["unique_registers"]),
        }

    def save_history(self, filename: str, format: str = 'json') -> bool:
        """
        Save state history to a file.

        Args:
            filename: Output filename
            format: File format ('json' or 'csv')

        Returns:
            True if successful, False otherwise
        """
        try:
            output_dir = os.path.dirname(filename)
            if output_dir and not os.path.exists(output_dir):
                os.makedirs(output_dir)

            if format == 'json':
                data = {
                    "history": list(self.state_history),
                    "statistics": self.get_statistics()
                }
                with open(filename, 'w') as f:
                    json.dump(data, f, indent=2)

            elif format == 'csv':
                register_names = sorted(self.stats["unique_registers"])
                headers = ["record_idx", "cycle", "opcode", "instruction"]
                headers.extend(f"reg_{name}" for name in register_names)

                with open(filename, 'w') as f:
                    f.write(",".join(headers) + "\n")

                    for i, state in enumerate(self.state_history):
                        opcode = state.get("opcode")
                        row = [
                            str(i),
                            str(state.get("cycle", "")),
                            f"{opcode:04X}" if opcode is not None else "",
                            state.get("instruction", "").replace(",", ";"),
                        ]
                        registers = state.get("registers", {})
                        row.extend(str(registers.get(name, "")) for name in register_names)
                        f.write(",".join(row) + "\n")
            else:
                logger.error(f"Unsupported format: {format}")
                return False

            logger.info(f"Saved state history to {filename} in {format} format")
            return True

        except OSError as e:
            logger.error(f"Error saving history: {e}")
            return False

    def clear(self) -> None:
        """Drop all recorded states."""
        self.state_history.clear()
        self.stats["total_records"] = 0
        self.stats["start_cycle"] = None
        self.stats["current_cycle"] = None
        self.stats["unique_registers"] = set()
