from cpatch.cli.app import main

main()
