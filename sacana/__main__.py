from sacana.launcher import main

main()
