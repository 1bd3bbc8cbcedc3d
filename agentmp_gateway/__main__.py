"""Allow ``python -m agentmp_gateway``."""
from agentmp_gateway.main import run

run()
