from tryinstall.cli import main

main()
