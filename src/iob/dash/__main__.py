from iob.dash.cli import main

main()
