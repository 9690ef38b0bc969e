from queue_sas.cli import run

run()
