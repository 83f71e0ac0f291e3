"""
mpnbody: Message-Passing N-Body Gravity Simulator

Simulates N point masses under Newtonian gravity, distributing the
all-pairs force computation across worker processes that are coordinated
by a single leader process.

Core concepts:
- The leader owns the ONE authoritative body table
- Every step the table is broadcast to all workers
- Each worker advances the bodies it owns and reports them one by one
- The leader collects exactly N reports before the next broadcast

Processes share nothing; all coordination is blocking send/receive.
"""

__version__ = "0.1.0"
