"""
Full-batch training loop over explicit parameters and state.

An Experiment puts a model config together with the choice of loss,
regularization and optimizer, so a whole run can be read from JSON:

    {
        "experiment_name": "xor",
        "model": {"kind": "Dense", "in_dims": 2, "out_dims": 2},
        "loss": "cross_entropy",
        "optimizer": "adam",
        "num_steps": 500
    }
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Optional

from pydantic import BaseModel, ConfigDict
from tqdm.auto import tqdm

from lumen.config import ModelConfig
from lumen.loss import (
    LOSS_FUNCTIONS,
    REGULARIZATIONS,
    Loss,
    LossEnum,
    RegularizationEnum,
)
from lumen.nn import Layer, Params, State
from lumen.optim import OPTIMIZERS, Optimizer, OptimizerEnum
from lumen.tensor import Tensor

logger = logging.getLogger(__name__)


class UpdateState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    step: int
    loss: float
    params: Dict[str, Any]
    state: Dict[str, Any]


def train(
    optimizer: Optimizer,
    params: Params,
    state: State,
    inputs: Tensor,
    targets: Tensor,
    num_steps: int,
    log_every: int = 100,
    progress: bool = True,
) -> Iterator[UpdateState]:
    bar = tqdm(total=num_steps, disable=not progress)
    try:
        for step in range(1, num_steps + 1):
            loss, params, state = optimizer.step(params, state, inputs, targets)
            loss = float(loss)
            if step % log_every == 0:
                logger.info("step=%d loss=%.5f", step, loss)
                bar.set_description(f"loss:{loss:.5f}")
            bar.update()
            yield UpdateState(step=step, loss=loss, params=params, state=state)
    finally:
        bar.close()


class Experiment(ModelConfig):
    experiment_name: str
    loss: LossEnum = LossEnum.mean_squared_error
    regularization: Optional[RegularizationEnum] = None
    regularization_weight: float = 0.01
    optimizer: OptimizerEnum = OptimizerEnum.sgd
    learning_rate: float = 0.01
    num_steps: int = 1000
    log_every: int = 100

    def create_loss_func(self) -> Loss:
        loss = LOSS_FUNCTIONS[self.loss]
        if self.regularization:
            regularize = REGULARIZATIONS[self.regularization]
            loss = regularize(loss, self.regularization_weight)
        return loss

    def create_optimizer(self, layer: Layer, loss: Loss) -> Optimizer:
        optimizer_class = OPTIMIZERS[self.optimizer]
        return optimizer_class.initialize(layer, loss, self.learning_rate)

    def run(
        self, inputs: Tensor, targets: Tensor, progress: bool = True
    ) -> Iterator[UpdateState]:
        layer, params, state = self.initialize()
        optimizer = self.create_optimizer(layer, self.create_loss_func())
        logger.info(
            "Starting %s: %s with %s for %d steps",
            self.experiment_name,
            self.loss.value,
            self.optimizer.value,
            self.num_steps,
        )
        yield from train(
            optimizer,
            params,
            state,
            inputs,
            targets,
            self.num_steps,
            log_every=self.log_every,
            progress=progress,
        )
