from rvp.cli import main

main()
