from stackforge.pipeline import main

main()
