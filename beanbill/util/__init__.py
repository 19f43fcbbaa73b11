"""Pure helpers with no beancount or beanbill imports."""
