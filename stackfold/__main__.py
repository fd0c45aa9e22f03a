from .cli import perf_main

if __name__ == "__main__":
    raise SystemExit(perf_main())
