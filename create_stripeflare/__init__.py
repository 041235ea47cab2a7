"""create-stripeflare -- scaffold, bill-enable and deploy a Stripeflare worker.

Quick usage::

    import asyncio
    from create_stripeflare import Pipeline, Settings
    from create_stripeflare.params import ParameterInput

    state = asyncio.run(
        Pipeline(Settings(), ParameterInput(name="my-worker", domain="x.dev", title="X")).run()
    )
"""

from create_stripeflare.config import Credentials, Settings, load_credentials
from create_stripeflare.pipeline import Pipeline, PipelineState, Stage, main

__version__ = "0.1.0"

__all__ = [
    "Credentials",
    "Pipeline",
    "PipelineState",
    "Settings",
    "Stage",
    "load_credentials",
    "main",
]
