"""Services used by FlightSurety nodes: configuration, contract ABIs, the web3
backend and JSON helpers."""
