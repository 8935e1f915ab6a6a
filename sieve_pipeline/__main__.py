from sieve_pipeline.cli import main

main()
