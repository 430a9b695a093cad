from camrec.cli import main

main()
