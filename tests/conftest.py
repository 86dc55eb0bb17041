import os

# keep test runs from writing log files into the working tree
os.environ.setdefault("LOG_DIR", "")
