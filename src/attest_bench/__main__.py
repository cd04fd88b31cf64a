"""Main entry point: python -m attest_bench"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from attest_bench import __version__
from attest_bench.analysis.batching import BatchAssembler, build_payload, prepare_run
from attest_bench.analysis.metrics import LiveCostEstimator, StaticCostEstimator
from attest_bench.analysis.report import export_csv, read_csv
from attest_bench.chain.calldata import decode_bool_result
from attest_bench.chain.registry import ROUTER_KEY, AddressBook
from attest_bench.chain.rpc import RpcClient
from attest_bench.ingest.log_parser import load_runs, read_legacy_log
from attest_bench.utils.config import load_config, parse_counts
from attest_bench.utils.errors import AttestBenchError, ConfigError, IngestionError, VerificationMismatch
from attest_bench.utils.logging_config import configure_logging
from attest_bench.utils.types import BenchmarkConfig, CallStyle, SignatureMode

logger = logging.getLogger("attest_bench")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="attest-bench",
        description="Normalize TEE/timestamp attestations and benchmark on-chain verification cost",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", type=str, default=None, help="Override LOG_LEVEL")
    parser.add_argument("--log-json", action="store_true", help="Emit JSON log lines")

    sub = parser.add_subparsers(dest="command")

    # benchmark
    bench = sub.add_parser("benchmark", help="Group runs and report average verification cost")
    bench.add_argument("--counts", type=str, help="Comma-separated group sizes (COUNTS)")
    bench.add_argument("--mode", choices=[m.value for m in SignatureMode], help="one or two signatures (MODE)")
    bench.add_argument("--style", choices=[s.value for s in CallStyle], help="Verifier call style (CALL_STYLE)")
    bench.add_argument("--out", type=str, help="CSV report path (OUT)")
    bench.add_argument("--rpc-url", type=str, help="JSON-RPC endpoint for live estimation (RPC_URL)")
    bench.add_argument("--contract", type=str, help="Verifier address (CONTRACT_ADDRESS)")
    bench.add_argument("--sender", type=str, help="Account used as eth_estimateGas sender")
    bench.add_argument("--jsonl", type=str, help="Structured log path (EXPERIMENT_JSONL)")
    bench.add_argument("--txt", type=str, help="Legacy text log path (EXPERIMENT_TXT)")
    bench.add_argument("--no-scheme-column", action="store_true", help="Omit the scheme column")

    # convert
    conv = sub.add_parser("convert", help="Rewrite the legacy text log as structured JSONL")
    conv.add_argument("--txt", type=str, help="Legacy text log path")
    conv.add_argument("--jsonl", type=str, help="Output JSONL path")

    # verify
    ver = sub.add_parser("verify", help="Recover signers for one run and optionally call the verifier")
    ver.add_argument("--index", type=int, default=-1, help="Run index (default: last run)")
    ver.add_argument("--style", choices=[s.value for s in CallStyle], help="Verifier call style")
    ver.add_argument("--rpc-url", type=str, help="JSON-RPC endpoint")
    ver.add_argument("--contract", type=str, help="Verifier address")
    ver.add_argument("--jsonl", type=str, help="Structured log path")
    ver.add_argument("--txt", type=str, help="Legacy text log path")

    # plot
    plot = sub.add_parser("plot", help="Plot one or more CSV reports")
    plot.add_argument("reports", nargs="+", help="CSV reports written by 'benchmark'")
    plot.add_argument("--save-dir", type=str, default=".", help="Directory for PNG files")

    # register
    reg = sub.add_parser("register", help="Record a deployed verifier in the address book")
    reg.add_argument("name", help=f"Scheme tag or '{ROUTER_KEY}'")
    reg.add_argument("address", help="Deployed contract address")
    reg.add_argument("--book", type=str, help="Address book path (ADDRESS_BOOK)")

    return parser


def apply_overrides(config: BenchmarkConfig, args: argparse.Namespace) -> BenchmarkConfig:
    """CLI flags take precedence over the environment."""
    if getattr(args, "counts", None):
        config.counts = parse_counts(args.counts)
    if getattr(args, "mode", None):
        config.mode = SignatureMode(args.mode)
    if getattr(args, "style", None):
        config.call_style = CallStyle(args.style)
    if getattr(args, "out", None):
        config.out = args.out
    if getattr(args, "rpc_url", None):
        config.rpc_url = args.rpc_url
    if getattr(args, "contract", None):
        config.contract_address = args.contract
    if getattr(args, "jsonl", None):
        config.jsonl_path = args.jsonl
    if getattr(args, "txt", None):
        config.txt_path = args.txt
    if getattr(args, "book", None):
        config.address_book = args.book
    return config


def resolve_contract(config: BenchmarkConfig) -> str:
    """Verifier address from config, else the address book's router."""
    if config.contract_address:
        return config.contract_address
    router = AddressBook.load(config.address_book).router
    if not router:
        raise ConfigError(
            f"Set CONTRACT_ADDRESS or register a '{ROUTER_KEY}' in {config.address_book}"
        )
    return router


def run_benchmark(config: BenchmarkConfig, args: argparse.Namespace) -> int:
    runs = load_runs(config.jsonl_path, config.txt_path)

    if config.live_estimation:
        rpc = RpcClient(config.rpc_url, timeout=config.rpc_timeout)
        sender = args.sender
        if not sender:
            accounts = rpc.accounts()
            sender = accounts[0] if accounts else None
        estimator = LiveCostEstimator(rpc, resolve_contract(config), sender)
    else:
        logger.info("RPC_URL not set, using static cost heuristic")
        estimator = StaticCostEstimator()

    assembler = BatchAssembler(runs, estimator, mode=config.mode, style=config.call_style)
    rows = assembler.run(config.counts)

    path = export_csv(rows, config.output_path, include_scheme=not args.no_scheme_column)
    print(f"CSV written: {path} ({len(rows)} rows)")
    return 0


def run_convert(config: BenchmarkConfig) -> int:
    if not Path(config.txt_path).is_file():
        raise IngestionError(f"No legacy log found at {config.txt_path}")
    runs = read_legacy_log(config.txt_path)
    if not runs:
        raise IngestionError(f"No runs matched by parser in {config.txt_path}")

    out = Path(config.jsonl_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text("".join(run.to_json() + "\n" for run in runs), encoding="utf-8")
    print(f"Wrote {len(runs)} runs to {out}")
    return 0


def run_verify(config: BenchmarkConfig, args: argparse.Namespace) -> int:
    runs = load_runs(config.jsonl_path, config.txt_path)
    index = args.index if args.index >= 0 else len(runs) + args.index
    if not 0 <= index < len(runs):
        raise ConfigError(f"Run index {args.index} out of range for {len(runs)} runs")
    run = runs[index]

    style = config.call_style
    try:
        prepared = prepare_run(run, style.digest_kind, require_keys=style is CallStyle.UNIVERSAL)
        payload = build_payload(prepared, SignatureMode.TWO, style)
    except AttestBenchError as exc:
        raise exc.with_run_index(index)

    print(f"Run #{index} scheme={run.scheme.value}")
    if prepared.delta_signer is not None:
        print(f"  Recovered TEE: {prepared.delta_signer.address} (v={prepared.delta_signer.recovery_id})")
        print(f"  Recovered TS:  {prepared.sigma_signer.address} (v={prepared.sigma_signer.recovery_id})")
    if prepared.delta_key is not None:
        print(f"  TEE key ({prepared.delta_key.encoding.value}): {prepared.delta_key.key.hex()}")
        print(f"  TS key  ({prepared.sigma_key.encoding.value}): {prepared.sigma_key.key.hex()}")
    print(f"  Payload bytes: {len(payload)}")

    if not config.rpc_url:
        return 0
    rpc = RpcClient(config.rpc_url, timeout=config.rpc_timeout)
    ok = decode_bool_result(rpc.call(resolve_contract(config), payload))
    print(f"  Verifier result: {ok}")
    if not ok:
        raise VerificationMismatch("verifier rejected the payload", run_index=index)
    return 0


def run_plot(args: argparse.Namespace) -> int:
    from attest_bench.visualization.plots import PlotSuite

    reports = {os.path.splitext(os.path.basename(p))[0]: read_csv(p) for p in args.reports}
    plots = PlotSuite(save_dir=args.save_dir)
    plots.cost_vs_count(reports)
    plots.payload_sizes(reports)
    print(f"Plots saved to {plots.save_dir}")
    return 0


def run_register(config: BenchmarkConfig, args: argparse.Namespace) -> int:
    book = AddressBook.load(config.address_book)
    address = book.register(args.name, args.address)
    book.save(config.address_book)
    print(f"Registered {args.name} -> {address} in {config.address_book}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config()
        configure_logging(args.log_level or config.log_level, json_format=args.log_json)
        config = apply_overrides(config, args)

        if args.command == "benchmark":
            return run_benchmark(config, args)
        elif args.command == "convert":
            return run_convert(config)
        elif args.command == "verify":
            return run_verify(config, args)
        elif args.command == "plot":
            return run_plot(args)
        elif args.command == "register":
            return run_register(config, args)
        else:
            parser.print_help()
            return 0
    except AttestBenchError as exc:
        logger.error("%s: %s", type(exc).__name__, exc, extra={"run_index": exc.run_index})
        return 1


if __name__ == "__main__":
    sys.exit(main())
