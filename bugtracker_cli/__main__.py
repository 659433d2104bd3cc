from bugtracker_cli.main import main

main()
