from chetter.main import main

main()
