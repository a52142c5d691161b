from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import List, Optional

import typer

from .chunker import broadcast_schedule
from .config import GlobalConfig
from .errors import ConflictingTransmission, CorruptChunk, MalformedChunk, ZkqrError
from .predicates import DomainNullifier
from .prover import ProverOutputs
from .reassembler import Reassembler, ReassemblyStatus
from .runtime import ZkqrRuntime, create_config
from .verifier import VerdictReport, expected_commitment, expected_domain_challenge
from .witness import BalanceSecret, NullifierSecret

app = typer.Typer(help="zkqr: offline zero-knowledge proofs over chunked QR frames.")


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _runtime(config: Path) -> ZkqrRuntime:
    return ZkqrRuntime(GlobalConfig.load(config))


def _write_frames(outputs: ProverOutputs, out: Path) -> None:
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text("\n".join(outputs.frames) + "\n", encoding="utf-8")
    typer.echo(f"Wrote {len(outputs.chunks)} frames ({len(outputs.text)} characters) to {out}")


def _reassemble(reassembler: Reassembler, lines: List[str]) -> str:
    for line in lines:
        if not line.strip():
            continue
        try:
            state = reassembler.ingest_and_maybe_finalize(line)
        except (MalformedChunk, CorruptChunk, ConflictingTransmission) as exc:
            typer.echo(f"Skipping frame: {exc}", err=True)
            continue
        if state.status is ReassemblyStatus.COMPLETE and state.text is not None:
            return state.text
    for total in reassembler.open_transmissions:
        error = reassembler.abandon(total)
        typer.echo(f"Incomplete: {error}", err=True)
    raise typer.Exit(code=1)


def _report(report: VerdictReport) -> None:
    typer.echo(f"Verdict: {report.verdict.value}")
    typer.echo(f"Predicate: {report.spec_tag}")
    typer.echo(f"Reason: {report.reason}")
    for name, value in report.named_inputs.items():
        typer.echo(f"{name}={value:#x}")
    if not report.accepted:
        raise typer.Exit(code=1)


@app.command()
def setup(
    out: Path = typer.Option(Path("zkqr.json"), "--out", "-o", help="Where the configuration JSON is written."),
    signature_scheme: str = typer.Option("ecdsa-p256", "--signature-scheme", help="ecdsa-p256 or hmac-sha256."),
    threshold: int = typer.Option(10_000, "--threshold", help="Minimum balance for balance proofs."),
    range_bits: int = typer.Option(32, "--range-bits", help="Bit width of the balance surplus range check."),
    prover_cmd: Optional[str] = typer.Option(None, "--prover-cmd", help="External prover command."),
    verifier_cmd: Optional[str] = typer.Option(None, "--verifier-cmd", help="External verifier command."),
) -> None:
    """Write a configuration with fresh signing keys."""
    artifacts = create_config(
        out,
        signature_scheme=signature_scheme,
        threshold=threshold,
        range_bits=range_bits,
        prover_cmd=prover_cmd,
        verifier_cmd=verifier_cmd,
    )
    typer.echo(f"Wrote config to {artifacts.config_path}")
    if artifacts.public_key_hex:
        typer.echo(f"Verifier public key: {artifacts.public_key_hex}")


@app.command("prove-balance")
def prove_balance(
    config: Path = typer.Option(..., "--config", "-c", help="Config JSON."),
    balance: int = typer.Option(..., "--balance", help="Secret balance."),
    out: Path = typer.Option(Path("frames.txt"), "--out", "-o", help="Frames file, one per line."),
) -> None:
    """Prove balance >= threshold behind a Poseidon commitment."""
    runtime = _runtime(config)
    spec = runtime.config.balance.predicate()
    try:
        outputs = runtime.prover().generate(spec, BalanceSecret(balance))
    except ZkqrError as exc:
        typer.echo(f"Proving failed: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Commitment: {outputs.artifact.public_inputs[0]:#x}")
    _write_frames(outputs, out)


@app.command("prove-nullifier")
def prove_nullifier(
    config: Path = typer.Option(..., "--config", "-c", help="Config JSON."),
    secret: str = typer.Option(..., "--secret", help="Identity secret."),
    domain: str = typer.Option(..., "--domain", help="Relying party domain."),
    challenge: str = typer.Option(..., "--challenge", help="Verifier challenge / session id."),
    out: Path = typer.Option(Path("frames.txt"), "--out", "-o", help="Frames file, one per line."),
) -> None:
    """Prove a secret bound to (domain, challenge) and emit its nullifier."""
    runtime = _runtime(config)
    try:
        outputs = runtime.prover().generate(DomainNullifier(), NullifierSecret(secret, domain, challenge))
    except ZkqrError as exc:
        typer.echo(f"Proving failed: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Nullifier: {outputs.artifact.public_inputs[2]:#x}")
    _write_frames(outputs, out)


@app.command("verify-balance")
def verify_balance(
    config: Path = typer.Option(..., "--config", "-c", help="Config JSON."),
    frames: Path = typer.Option(..., "--frames", "-f", help="Scanned frames, one per line, any order."),
    commitment: Optional[str] = typer.Option(None, "--commitment", help="Expected commitment (hex)."),
) -> None:
    """Reassemble frames and verify a balance proof."""
    expected = None
    if commitment:
        try:
            expected = expected_commitment(int(commitment, 16))
        except ValueError as exc:
            raise typer.BadParameter(f"not a hex field element: {commitment}", param_hint="--commitment") from exc
    runtime = _runtime(config)
    text = _reassemble(runtime.reassembler(), frames.read_text(encoding="utf-8").splitlines())
    _report(runtime.verifier().verify_text(runtime.config.balance.predicate(), text, expected))


@app.command("verify-nullifier")
def verify_nullifier(
    config: Path = typer.Option(..., "--config", "-c", help="Config JSON."),
    frames: Path = typer.Option(..., "--frames", "-f", help="Scanned frames, one per line, any order."),
    domain: str = typer.Option(..., "--domain", help="Domain the verifier expects."),
    challenge: str = typer.Option(..., "--challenge", help="Challenge the verifier issued."),
) -> None:
    """Reassemble frames and verify a nullifier proof against the issued challenge."""
    runtime = _runtime(config)
    text = _reassemble(runtime.reassembler(), frames.read_text(encoding="utf-8").splitlines())
    _report(runtime.verifier().verify_text(DomainNullifier(), text, expected_domain_challenge(domain, challenge)))


@app.command()
def schedule(
    total: int = typer.Option(..., "--total", "-n", help="Number of chunks."),
    cycles: Optional[int] = typer.Option(None, "--cycles", help="Broadcast cycles (default from config, else 1)."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config JSON."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for the shuffled pass."),
) -> None:
    """Print the frame broadcast order (forward, reverse, shuffled)."""
    if cycles is None:
        cycles = GlobalConfig.load(config).transport.broadcast_cycles if config else 1
    order = broadcast_schedule(total, cycles, random.Random(seed))
    typer.echo(" ".join(str(index) for index in order))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
