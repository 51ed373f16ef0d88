"""Run the faucet with ``python -m mantle_faucet``."""

from mantle_faucet.main import main

if __name__ == "__main__":
    main()
