"""nettui — live network throughput dashboard for the terminal.

Pipeline, one pass per tick:
    ProcNetDevSource -> RateEngine -> Aggregator -> Display
driven by RenderLoop.
"""

__version__ = "0.1.0"
