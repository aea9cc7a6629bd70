import argparse
import json
import os
import sys

from bundler.config import load_config
from bundler.errors import BundleError
from bundler.output import DevServer, write_bundle
from packer import build_graph, compile_bundle, set_verbose

CONFIG_FILE = "minipack.json"

def log(message):
    """Log informational messages to stderr."""
    print(f"\033[92m\033[1mINFO:\033[0m {message}", file=sys.stderr)

def fail(error):
    print(f"Error: Build failed:\n{error}", file=sys.stderr)
    sys.exit(1)

def cmd_build(args):
    set_verbose(args.verbose)
    try:
        config = load_config(args.config, overrides={
            "output": args.output,
            "minify": args.minify,
            "source_map": args.source_map,
            "serve": args.serve,
            "port": args.port,
        })
        result = compile_bundle(args.entry_point, config, progress=log)

        if config.output:
            for path in write_bundle(config.output, result.code, result.source_map):
                log(f"❯ Wrote {path}")
        elif not config.serve:
            # Bundle goes to stdout; logs stay on stderr
            sys.stdout.write(result.code)
            sys.stdout.flush()

        if config.serve:
            server = DevServer(result.code, host=config.host, port=config.port,
                               source_map=result.source_map)
            log(f"🚀 Serving on {server.url} (Ctrl+C to stop)")
            server.serve_forever()
    except BundleError as e:
        fail(e)

def cmd_graph(args):
    set_verbose(args.verbose)
    try:
        config = load_config(args.config)
        table = build_graph(args.entry_point, config)
    except BundleError as e:
        fail(e)

    ids = {module.path: module.id for module in table.modules.values()}
    for module in table.ordered():
        print(f"{module.id}\t{os.path.relpath(module.path)}")
        for specifier, path in module.dependencies.items():
            print(f"\t{specifier} -> {ids[path]}")

def cmd_init(args):
    log("Initializing project...")
    os.makedirs("src", exist_ok=True)
    with open(os.path.join("src", "index.js"), "w") as f:
        f.write('import { greet } from "./greet";\n\nconsole.log(greet("minipack"));\n')
    with open(os.path.join("src", "greet.js"), "w") as f:
        f.write('export function greet(name) {\n  return "Hello, " + name + "!";\n}\n')
    if not os.path.exists(CONFIG_FILE):
        with open(CONFIG_FILE, "w") as f:
            json.dump({"roots": ["src"], "output": "dist/bundle.js"}, f, indent=2)
            f.write("\n")
    log(f"Created src/index.js, src/greet.js and {CONFIG_FILE}")
    log("🚀 To build: minipack build --entry-point src/index.js")


def main():
    parser = argparse.ArgumentParser(description="minipack: a minimal JavaScript bundler")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output (sent to stderr)")
    subparsers = parser.add_subparsers(dest="command")

    build = subparsers.add_parser("build", help="Bundle an entry module and its dependencies")
    build.add_argument("--entry-point", required=True, help="Entry module of the bundle")
    build.add_argument("--output", help="Output file (default: write the bundle to stdout)")
    # Flags default to None so they only override the config file when given
    build.add_argument("--minify", action="store_true", default=None, help="Minify the bundle")
    build.add_argument("--source-map", action="store_true", default=None,
                       help="Write a source map next to the output (needs --minify)")
    build.add_argument("--serve", action="store_true", default=None, help="Serve the bundle for development")
    build.add_argument("--port", type=int, help="Development server port (default: 8000)")
    build.add_argument("--config", help=f"Configuration file (default: {CONFIG_FILE})")

    graph = subparsers.add_parser("graph", help="Print the module table")
    graph.add_argument("--entry-point", required=True, help="Entry module")
    graph.add_argument("--config", help=f"Configuration file (default: {CONFIG_FILE})")

    subparsers.add_parser("init", help="Create a sample project")

    args = parser.parse_args()

    if args.command == "build": cmd_build(args)
    elif args.command == "graph": cmd_graph(args)
    elif args.command == "init": cmd_init(args)
    else: parser.print_help()

if __name__ == "__main__":
    main()
