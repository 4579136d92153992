from mcsl.cli.app import main

main()
