from maint.cli.app import main

main()
