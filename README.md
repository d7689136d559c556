# tomasim

A cycle-by-cycle simulator of Tomasulo's algorithm for a small MIPS-like
instruction set. It reads a program from a text file, lists the instructions
it will run, and then prints the state of the machine on every clock cycle:
reservation stations, load and store buffers, functional units, register
status, register values and memory. Debug traces and the state report are
written with Portuguese labels (for example `Clock Cycle`, `Estado do
Simulador`, `Memória`).

## Installation

```
pip install .
```

## Usage

Write a program, one instruction per line. Blank lines are skipped, and
everything after a `#` is a comment.

```
# compute r3 = (r1 + 5) * r1
addi r1 r0 5
add  r2 r1 r0
mul  r3 r2 r1
sw   r3 100(r0)
```

Then run:

```
tomasim [PROGRAM] [--max-cycles N]
```

- `PROGRAM` is the program file; it defaults to `instructions.txt` in the
  current directory.
- `--max-cycles N` sets the cycle limit (default 1000). When a run passes it,
  an `[ERRO] Loop infinito detectado` message goes to standard error and the
  run stops, printing the final state.

The command exits with status 1 if the file cannot be opened, holds no
instructions, or has a load/store offset that is not a number; otherwise it
exits with status 0.

## Instruction set

| Form                            | Meaning                                   |
|---------------------------------|-------------------------------------------|
| `lw rd off(rb)`                 | load word from memory at `off + rb`       |
| `sw rv off(rb)`                 | store `rv` to memory at `off + rb`        |
| `add/sub/mul/div rd rs rt`      | register arithmetic                       |
| `addi/subi/muli/divi rd rs imm` | arithmetic with an immediate              |
| `beq/bne rs rt off`             | branch relative to the next instruction   |
| `j addr` / `jal addr`           | jump (and link into `$ra`)                |
| `jr rs`                         | jump to the address held in `rs`          |

Any other mnemonic is treated as a no-op. Division by zero yields 0.
Registers and memory start at 0.

## Machine

- 3 add and 2 multiply reservation stations, 3 load and 3 store buffers.
- Functional units: two adders (2 cycles), two multipliers (10 cycles), one
  load unit and one store unit (2 cycles each).
- Each cycle writes back finished results (forwarding them to waiting
  stations and buffers), advances and starts execution, then issues the
  instruction at the program counter.

## Library use

```python
import sys
from tomasim.instruction import parse_instruction
from tomasim.simulator import Tomasulo

program = [parse_instruction(line) for line in ["addi r1 r0 4", "muli r2 r1 3"]]
sim = Tomasulo(program, sys.stdout, 1000)
sim.run()
print(sim.registers["r2"], sim.clock, sim.aborted)
```

- `tomasim.instruction`: `InstructionType`, the `Instruction` dataclass (its
  `str()` is the assembly form) and `parse_instruction(line)`.
- `tomasim.hardware`: the `RegisterStatus`, `ReservationStation`,
  `LoadStoreBuffer` and `FunctionalUnit` structures, plus `execution_time`,
  `station_kind`, `is_load_store`, `is_branch` and `is_jump`.
- `tomasim.simulator.Tomasulo`: `run()` simulates to the end, `step()`
  simulates one cycle, `print_state()` writes the state report. The
  `registers`, `memory`, `register_status`, `clock`, `pc` and `aborted`
  attributes can be inspected afterwards. Output goes to `out`, or to
  standard output when it is `None`.
- `tomasim.report.format_state(simulator)` returns the state report as a
  string.
- `tomasim.cli.read_instructions(path)` parses a program file the same way
  the command does, and `tomasim.cli.main(argv)` runs the command.