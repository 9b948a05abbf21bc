from feature_resolver.runner import main

main()
