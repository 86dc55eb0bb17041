#!/usr/bin/env python3
from simple_cicd.orchestrator import main


if __name__ == "__main__":
    main()
