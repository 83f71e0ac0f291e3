"""
Core engine primitives.

This layer knows about bodies, partitions, one kernel, and messages.
It knows NOTHING about consoles, plots, or how processes are launched:
- Body table (authoritative vs replica)
- Work partition rules (initialization vs steady state)
- Gravity kernel (one body, one step)
- Message frames and transports
- Leader / Worker state machines

Two transports are available:
- LocalCommunicator: multiprocessing queues, for local process groups
- MPICommunicator: mpi4py, for mpiexec launches
"""

from mpnbody.core.config import SimulationConfig, MIN_WORKERS
from mpnbody.core.errors import (
    NBodyError,
    ConfigurationError,
    ProtocolError,
    CommunicationTimeout,
    WorkerLostError,
)
from mpnbody.core.bodies import Body, BodyTable, AuthoritativeTable, ReplicaTable
from mpnbody.core.partition import (
    InitializationPartition,
    SteadyStatePartition,
    partition_for,
)
from mpnbody.core.kernel import Kernel, GravityKernel, create_default_kernel
from mpnbody.core.messages import InitBatch, TableBroadcast, BodyReport
from mpnbody.core.comm import Communicator, LocalCommunicator, MPICommunicator
from mpnbody.core.protocol import Leader, Worker, RunResult

__all__ = [
    "SimulationConfig",
    "MIN_WORKERS",
    "NBodyError",
    "ConfigurationError",
    "ProtocolError",
    "CommunicationTimeout",
    "WorkerLostError",
    "Body",
    "BodyTable",
    "AuthoritativeTable",
    "ReplicaTable",
    "InitializationPartition",
    "SteadyStatePartition",
    "partition_for",
    "Kernel",
    "GravityKernel",
    "create_default_kernel",
    "InitBatch",
    "TableBroadcast",
    "BodyReport",
    "Communicator",
    "LocalCommunicator",
    "MPICommunicator",
    "Leader",
    "Worker",
    "RunResult",
]
