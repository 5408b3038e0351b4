from whackamole.main import main

main()
