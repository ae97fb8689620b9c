"""btern Interactive Demo.

A Gradio web interface for running and visualizing btern CPU execution.

Usage:
    cd /path/to/btern
    python demo/gradio_app.py

Features:
    - Pick a bundled example or edit the resolved-instruction table
    - See step-by-step execution trace with raw trit words
    - Visualize register state changes
    - Faults reported with PC and raw instruction Word
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import gradio as gr
from btern import TernaryCPU, TernaryError
from btern.encoder import instruction_from_tuple
from btern.programs import EXAMPLES
from btern.state import DEFAULT_MEMORY_SIZE


HEADERS = ["mnemonic", "rd", "rs1", "rs2", "imm"]
TRACE_LIMIT = 100


def example_rows(name: str) -> list:
    """Table rows for a bundled example, padded to five columns."""
    if name not in EXAMPLES:
        return [["HALT", 0, 0, 0, 0]]
    rows = []
    for item in EXAMPLES[name].source:
        mnemonic, *operands = item
        rows.append([mnemonic] + list(operands) + [0] * (4 - len(operands)))
    return rows


def _rows_to_instructions(rows: list) -> list:
    instructions = []
    for row in rows:
        if not row or not str(row[0]).strip():
            continue
        values = [row[0]] + [v if v not in ("", None) else 0 for v in row[1:5]]
        instructions.append(instruction_from_tuple(values, index=len(instructions)))
    return instructions


# =============================================================================
# Execution Functions
# =============================================================================

def run_program(rows: list, memory_size: int, max_cycles: int) -> tuple:
    """Encode and execute a resolved program table.

    Args:
        rows: Table rows of (mnemonic, rd, rs1, rs2, imm)
        memory_size: Memory capacity in Words
        max_cycles: Maximum execution cycles

    Returns:
        Tuple of (summary_text, trace_text, registers_text)
    """
    try:
        instructions = _rows_to_instructions(rows)
        if not instructions:
            return "Error: No program provided", "", ""

        cpu = TernaryCPU(memory_size=int(memory_size), max_cycles=int(max_cycles))
        cpu.load_instructions(instructions)
    except (TernaryError, ValueError) as e:
        return f"Error: {e}", "", ""

    try:
        trace = cpu.run()
    except RuntimeError as e:
        error_msg = str(e)
        trace = cpu.get_trace()
    else:
        error_msg = None

    # Format summary
    summary = cpu.get_summary()
    summary_lines = [
        "EXECUTION SUMMARY",
        "=" * 40,
        f"Program: {len(instructions)} words",
        f"Cycles: {summary['cycles']}",
        f"Halted: {'Yes' if summary['halted'] else 'No'}",
        f"PC: {summary['pc']}",
        f"Call depth: {summary['call_depth']}",
    ]
    if error_msg:
        summary_lines.append(f"\nRuntime: {error_msg}")
    if summary["fault"]:
        summary_lines.append(f"\nFault: {summary['fault']}")
    summary_text = "\n".join(summary_lines)

    # Format trace
    trace_lines = [
        "EXECUTION TRACE",
        "=" * 60,
    ]
    for entry in trace[:TRACE_LIMIT]:
        trace_lines.append(f"\n--- Cycle {entry.cycle} (PC={entry.pc}) ---")
        if entry.raw is not None:
            trace_lines.append(f"Word:        {entry.raw}")
        if entry.instruction is not None:
            trace_lines.append(f"Instruction: {entry.instruction}")
        if entry.error:
            trace_lines.append(f"Fault:       {entry.error}")

        pre_regs = entry.pre_state["registers"]
        post_regs = entry.post_state["registers"]
        changes = [
            f"{reg}: {pre_regs[reg]} -> {post_regs[reg]}"
            for reg in pre_regs
            if pre_regs[reg] != post_regs[reg]
        ]
        if changes:
            trace_lines.append(f"Changes:     {', '.join(changes)}")

    if len(trace) > TRACE_LIMIT:
        trace_lines.append(f"\n... ({len(trace) - TRACE_LIMIT} more entries)")
    trace_text = "\n".join(trace_lines)

    # Format registers
    reg_lines = [
        "FINAL REGISTERS",
        "=" * 44,
    ]
    for reg, value in summary["registers"].items():
        word = cpu.get_register_word(reg)
        marker = " *" if value != 0 else ""
        reg_lines.append(f"  {reg:>3}: {value:>11} {word}{marker}")
    registers_text = "\n".join(reg_lines)

    return summary_text, trace_text, registers_text


def load_example(example_name: str) -> list:
    """Load an example program into the table."""
    return example_rows(example_name)


# =============================================================================
# Gradio Interface
# =============================================================================

def create_demo():
    """Create and return the Gradio demo interface."""

    first = next(iter(EXAMPLES))

    with gr.Blocks(title="btern Demo", theme=gr.themes.Soft()) as demo:
        gr.Markdown("""
        # btern: Balanced-Ternary Virtual Machine

        A reference CPU whose registers, memory and instructions are 27-trit
        balanced-ternary Words (digits -1, 0, +1).

        **Pipeline**: `resolved instructions -> encode -> memory -> fetch -> decode -> execute`
        """)

        with gr.Row():
            with gr.Column(scale=2):
                gr.Markdown("### Program")

                example_dropdown = gr.Dropdown(
                    choices=list(EXAMPLES.keys()),
                    value=first,
                    label="Load Example"
                )

                program_input = gr.Dataframe(
                    value=example_rows(first),
                    headers=HEADERS,
                    datatype=["str", "number", "number", "number", "number"],
                    type="array",
                    col_count=(5, "fixed"),
                    label="Resolved Instructions (load base 0)",
                    interactive=True
                )

                gr.Markdown("### Settings")

                with gr.Row():
                    memory_size = gr.Slider(
                        minimum=27,
                        maximum=DEFAULT_MEMORY_SIZE,
                        value=729,
                        step=1,
                        label="Memory Size (Words)"
                    )
                    max_cycles = gr.Slider(
                        minimum=100,
                        maximum=100000,
                        value=10000,
                        step=100,
                        label="Max Cycles"
                    )

                run_button = gr.Button("Run Program", variant="primary")

            with gr.Column(scale=3):
                with gr.Row():
                    summary_output = gr.Textbox(
                        label="Summary",
                        lines=10,
                        interactive=False
                    )
                    registers_output = gr.Textbox(
                        label="Final Registers",
                        lines=10,
                        interactive=False
                    )

                trace_output = gr.Textbox(
                    label="Execution Trace",
                    lines=20,
                    interactive=False
                )

        with gr.Accordion("ISA Reference", open=False):
            gr.Markdown("""
            | Instruction | Fields used | Effect |
            |-------------|-------------|--------|
            | `NOP` | - | no effect |
            | `ADD Rd, Rs1, Rs2` | rd, rs1, rs2 | Rd = Rs1 + Rs2 |
            | `ADDI Rd, Rs1, Imm` | rd, rs1, imm | Rd = Rs1 + Imm |
            | `SUB Rd, Rs1, Rs2` | rd, rs1, rs2 | Rd = Rs1 - Rs2 |
            | `SUBI Rd, Rs1, Imm` | rd, rs1, imm | Rd = Rs1 - Imm |
            | `LDW Rd, [Rs1+Imm]` | rd, rs1, imm | Rd = Mem[Rs1 + Imm] |
            | `STW [Rs1+Imm], Rs2` | rs1, rs2, imm | Mem[Rs1 + Imm] = Rs2 |
            | `JMP [Rs1+Imm]` | rs1, imm | PC = Rs1 + Imm |
            | `CALL [Rs1+Imm]` | rs1, imm | push PC+1; PC = Rs1 + Imm |
            | `RET` | - | PC = pop |
            | `BRZ Rs1, [Rs2+Imm]` | rs1, rs2, imm | if Rs1 == 0: PC = Rs2 + Imm |
            | `HALT` | - | stop |

            **Registers**: R0-R26 (27 trits each; R0 always reads 0)
            **Immediate**: 12 trits, -265720..265720
            **Arithmetic**: wraps modulo 3^27
            """)

        example_dropdown.change(
            fn=load_example,
            inputs=[example_dropdown],
            outputs=[program_input]
        )

        run_button.click(
            fn=run_program,
            inputs=[program_input, memory_size, max_cycles],
            outputs=[summary_output, trace_output, registers_output]
        )

    return demo


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    demo = create_demo()
    demo.launch(
        share=False,
        server_name="0.0.0.0",
        server_port=7861,
        show_error=True
    )
