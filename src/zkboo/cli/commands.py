"""zkboo CLI commands.

- version: Version information
- circuits: Registered circuits
- prove / verify: Proof generation and transcript verification
- demo: Age-check walkthrough
- config: Configuration
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from zkboo.core.config import settings
from zkboo.core.errors import MalformedTranscript, MalformedWitness, UnknownCircuit
from zkboo.circuits.compiler import compiler
from zkboo.circuits.prover import ZKProver
from zkboo.circuits.verifier import ZKVerifier
from zkboo.circuits import transcript
from zkboo.cli.utils import (
    console, print_success, print_error, print_warning, print_info,
    print_table, print_json, format_bytes, format_duration, format_timestamp,
    format_soundness, format_flag, run_with_spinner, WORD
)


# ============================================================================
# PROOF COMMANDS
# ============================================================================

@click.command()
@click.argument('circuit')
@click.option('--private', '-p', 'private', multiple=True, type=WORD,
              help='Private input word (repeat per input)')
@click.option('--public', '-u', 'public', multiple=True, type=WORD,
              help='Public input word (repeat per input)')
@click.option('--repetitions', '-r', type=click.IntRange(1, 4096), default=None,
              help='Repetitions (defaults to ZKBOO_REPETITIONS)')
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              default=None, help='Transcript file')
@click.option('--full', is_flag=True, help='Include every revealed view log')
@click.pass_context
def prove(ctx, circuit: str, private: Tuple[int, ...], public: Tuple[int, ...],
          repetitions: Optional[int], output: Optional[Path], full: bool):
    """Prove knowledge of PRIVATE inputs making CIRCUIT produce its output."""
    zk_prover = ZKProver(repetitions=repetitions, compact=not full)
    try:
        proof = asyncio.run(run_with_spinner(
            zk_prover.generate_proof(circuit, list(private), list(public)),
            f"Proving {circuit}..."
        ))
    except (MalformedWitness, UnknownCircuit) as e:
        print_error(str(e))
        ctx.exit(1)

    if output is None:
        output = Path(settings.transcript_dir) / f"{circuit}-{proof.proof_hash[:12]}.json"
    output.parent.mkdir(parents=True, exist_ok=True)
    transcript.save(proof, output)

    stats = zk_prover.get_stats()
    print_success(f"Proof generated in {format_duration(stats['avg_generation_time'])}")
    console.print(f"  [cyan]Circuit:[/cyan] {proof.circuit_name}")
    console.print(f"  [cyan]Output:[/cyan] {', '.join(format_flag(w) for w in proof.output)}")
    console.print(f"  [cyan]Repetitions:[/cyan] {proof.repetitions} "
                  f"(soundness error {format_soundness(proof.repetitions)})")
    console.print(f"  [cyan]Hash:[/cyan] {proof.proof_hash}")
    console.print(f"  [cyan]Created:[/cyan] {format_timestamp(proof.timestamp)}")
    console.print(f"  [cyan]Transcript:[/cyan] {output} ({format_bytes(output.stat().st_size)})")


@click.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def verify(ctx, file: Path):
    """Verify a proof transcript FILE."""
    try:
        proof = transcript.load(file)
    except MalformedTranscript as e:
        print_error(f"Malformed transcript: {e}")
        ctx.exit(1)

    zk_verifier = ZKVerifier()
    result = asyncio.run(run_with_spinner(zk_verifier.verify(proof), "Verifying..."))

    if result.valid:
        print_success(f"Proof is valid (verified in {result.verification_time_ms:.2f}ms)")
        console.print(f"  [cyan]Circuit:[/cyan] {proof.circuit_name}")
        console.print(f"  [cyan]Output:[/cyan] {', '.join(format_flag(w) for w in result.output)}")
        console.print(f"  [cyan]Two-view hash:[/cyan] {result.two_view_hash}")
    else:
        print_error(f"Proof is invalid: {result.error}")
        ctx.exit(1)


@click.command()
@click.option('--repetitions', '-r', type=click.IntRange(1, 4096), default=None,
              help='Repetitions per proof')
def demo(repetitions: Optional[int]):
    """Prove "age > 19" for an adult and a minor, then verify both."""
    zk_prover = ZKProver(repetitions=repetitions)
    zk_verifier = ZKVerifier()

    async def run():
        proofs = [await zk_prover.generate_proof("age_check", [age]) for age in (25, 10)]
        return proofs, await zk_verifier.verify_batch(proofs)

    proofs, results = asyncio.run(run_with_spinner(run(), "Running age check demo..."))

    rows = []
    for age, proof, result in zip((25, 10), proofs, results):
        rows.append([
            age,
            format_flag(proof.output[0]),
            "✓" if result.valid else "✗",
            f"{result.verification_time_ms:.1f}ms",
            format_bytes(len(transcript.dumps(proof))),
        ])
    print_table("age > 19", ["Prover age", "Claimed", "Valid", "Verify", "Transcript"], rows)

    if not all(result.valid for result in results):
        print_warning("A demo proof failed verification")
    else:
        print_info(f"Both proofs verified with {proofs[0].repetitions} repetitions "
                   f"(soundness error {format_soundness(proofs[0].repetitions)})")


# ============================================================================
# CIRCUIT COMMANDS
# ============================================================================

@click.command()
@click.option('--key', 'key_of', default=None, help='Show the verification key of a circuit')
@click.pass_context
def circuits(ctx, key_of: Optional[str]):
    """List registered circuits."""
    if key_of:
        key = compiler.get_verification_key(key_of)
        if key is None:
            print_error(f"Unknown circuit: {key_of}")
            ctx.exit(1)
        print_json(key)
        return

    rows = []
    for name in compiler.available():
        circuit = compiler.compile(name)
        rows.append([name, circuit.private_inputs, circuit.public_inputs,
                     circuit.outputs, circuit.description])
    print_table("Circuits", ["Name", "Private", "Public", "Outputs", "Description"], rows)


# ============================================================================
# CONFIG COMMANDS
# ============================================================================

@click.group()
def config():
    """Manage configuration."""
    pass


@config.command(name="show")
def config_show():
    """Show current configuration."""
    settings_dict = settings.describe()
    settings_dict["soundness_error"] = format_soundness(settings.repetitions)
    print_json(settings_dict)


# ============================================================================
# UTILITY COMMANDS
# ============================================================================

@click.command()
def version():
    """Show version information."""
    from zkboo import __version__

    console.print(f"[bold cyan]zkboo[/bold cyan] [green]v{__version__}[/green]")
    console.print(f"Python: {sys.version.split()[0]}")
    console.print(f"Circuits: {len(compiler.available())} registered")


__all__ = ["prove", "verify", "demo", "circuits", "config", "version"]
