from linkfixer.main import main

main()
