from acmelib.cli.main import main

main()
