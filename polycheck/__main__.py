from polycheck.cli import main

main()
