"""Gas estimation for pending deployments."""

import logging

from .constants import DEFAULT_GAS_PRICE
from .rpc import ChainClient
from .types import GasEstimate, PendingDeployment
from .units import format_gwei

logger = logging.getLogger(__name__)


class GasEstimator:
    """Computes gas limit, gas price and cost before a deployment is submitted."""

    def __init__(self, client: ChainClient, default_gas_price: int = DEFAULT_GAS_PRICE):
        self.client = client
        self.default_gas_price = default_gas_price

    def current_gas_price(self) -> int:
        """Return the node's gas price, or the default if it reports none."""
        fee_data = self.client.get_fee_data()
        if fee_data.gas_price is None:
            logger.info(
                "No fee data from node, using default gas price of %s gwei",
                format_gwei(self.default_gas_price),
            )
            return self.default_gas_price
        return fee_data.gas_price

    def estimate(self, pending: PendingDeployment) -> GasEstimate:
        """
        Estimate the cost of a pending deployment.

        Args:
            pending: Unsubmitted contract-creation transaction

        Returns:
            GasEstimate with cost in wei

        Raises:
            EstimationError: If the node cannot estimate the transaction
                (e.g. the constructor reverts); the deployment must not proceed
        """
        gas_limit = self.client.estimate_gas(pending.to_transaction())
        gas_price = self.current_gas_price()

        estimate = GasEstimate(
            gas_limit=gas_limit,
            gas_price=gas_price,
            estimated_cost=gas_limit * gas_price,
        )
        logger.debug(
            "Estimated %s: %d gas at %s gwei (~%s ETH)",
            pending.contract_name,
            gas_limit,
            format_gwei(gas_price),
            estimate.estimated_cost_ether,
        )
        return estimate
