"""
sicasm - SIC/XE Assembler Command-Line Interface
================================================

This module implements the command-line interface for the SIC/XE
assembler. It assembles a source file into an object program and can
also write a listing and a symbol file.

Usage Examples
--------------
Basic assembly:
    $ sicasm copy.asm

With output file:
    $ sicasm copy.asm -o copy.obj

Generate all output files:
    $ sicasm copy.asm -o copy.obj -l copy.lst -s copy.sym

Reject labels defined twice:
    $ sicasm --strict copy.asm

Verbose mode:
    $ sicasm -v copy.asm

Options left unset fall back to the SICASM_* environment variables
(see sicxe_asm.config).
"""

import logging
from pathlib import Path
from typing import Optional

import click

from sicxe_asm import __version__
from sicxe_asm.assembler import Assembler
from sicxe_asm.cli.errors import handle_cli_exception
from sicxe_asm.config import AssemblerConfig


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output object program file (default: input.obj)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol and literal table file",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Fail when a label is defined twice in one section",
)
@click.option(
    "--record-limit",
    type=click.IntRange(min=2),
    default=None,
    help="Maximum hex characters per text record (even, default: 60)",
)
@click.option(
    "--instructions",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Instruction table file to use instead of the built-in one",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="sicasm")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    strict: bool,
    record_limit: Optional[int],
    instructions: Optional[Path],
    verbose: bool,
) -> None:
    """
    Assemble SIC/XE source code into an object program.

    INPUT_FILE is the assembly source file. Fields are separated by tabs:
    LABEL, OPERATOR, OPERANDS, COMMENT.

    \b
    Examples:
        sicasm copy.asm              # Outputs copy.obj
        sicasm copy.asm -o out.obj   # Specify output file
        sicasm copy.asm -l copy.lst  # Also write a listing
    """
    if record_limit is not None and record_limit % 2:
        handle_cli_exception(
            click.BadParameter(f"--record-limit must be even, got {record_limit}"),
            verbose=verbose,
        )

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    output_file = output if output is not None else input_file.with_suffix(".obj")

    try:
        config = AssemblerConfig.from_env()
        if strict:
            config.strict_symbols = True
        if record_limit is not None:
            config.text_record_limit = record_limit
        if instructions is not None:
            config.instruction_file = instructions

        asm = Assembler(config)

        if verbose:
            click.echo(f"Assembling {input_file}...")
            if config.instruction_file:
                click.echo(f"Instruction table: {config.instruction_file}")
            click.echo(f"Strict symbols: {'enabled' if config.strict_symbols else 'disabled'}")

        asm.assemble_file(input_file)

        asm.write_object(output_file)
        if verbose:
            click.echo(f"Wrote object program to {output_file}")

        # Write optional auxiliary files
        if listing:
            asm.write_listing(listing)
            if verbose:
                click.echo(f"Wrote listing to {listing}")

        if symbols:
            asm.write_symbols(symbols)
            if verbose:
                click.echo(f"Wrote symbols to {symbols}")

        # Print summary
        if verbose:
            for context in asm.get_sections():
                section = context.section
                click.echo(
                    f"Section {section.program_name}: {section.program_length} bytes, "
                    f"{len(context.symbols)} symbols, "
                    f"{len(context.modifications)} modification records"
                )
            click.echo(f"Assembly complete: {asm.section_count} section(s)")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
